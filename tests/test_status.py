"""
Test cases for workflow status categories.
"""

from django.test import TestCase

from study.status import (
    DOCTOR_STATUS_CATEGORIES,
    WorkflowStatus,
    all_doctor_statuses,
    category_for_status,
    statuses_for_category,
)


class StatusCategoryTests(TestCase):
    def test_categories_do_not_overlap(self):
        statuses = all_doctor_statuses()

        self.assertEqual(len(statuses), len(set(statuses)))

    def test_all_is_union_of_categories(self):
        union = set()
        for statuses in DOCTOR_STATUS_CATEGORIES.values():
            union.update(statuses)

        self.assertEqual(set(statuses_for_category('all')), union)

    def test_category_for_status(self):
        self.assertEqual(category_for_status(WorkflowStatus.ASSIGNED_TO_DOCTOR), 'pending')
        self.assertEqual(category_for_status(WorkflowStatus.REPORT_DOWNLOADED), 'pending')
        self.assertEqual(category_for_status(WorkflowStatus.REPORT_DRAFTED), 'inprogress')
        self.assertEqual(category_for_status(WorkflowStatus.REPORT_FINALIZED), 'inprogress')
        self.assertEqual(category_for_status(WorkflowStatus.FINAL_REPORT_DOWNLOADED), 'completed')

    def test_statuses_outside_categories_are_unknown(self):
        self.assertEqual(category_for_status(WorkflowStatus.ARCHIVED), 'unknown')
        self.assertEqual(category_for_status(None), 'unknown')

    def test_unknown_category_has_no_statuses(self):
        self.assertEqual(statuses_for_category('archived'), [])

    def test_label_falls_back_to_value(self):
        self.assertEqual(WorkflowStatus.label(WorkflowStatus.REPORT_FINALIZED), 'Report Finalized')
        self.assertEqual(WorkflowStatus.label('custom_status'), 'custom_status')
