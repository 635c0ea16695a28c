from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase

from .models import Student


class StudentModelTests(TestCase):
    def _create_student(self, nis='1001', **extra):
        data = {
            'nis': nis,
            'name': 'Ahmad Fauzi',
            'student_class': 'Kelas 3',
        }
        data.update(extra)
        return Student.objects.create(**data)

    def test_nis_is_unique(self):
        self._create_student(nis='2001')
        with self.assertRaises(IntegrityError):
            self._create_student(nis='2001')

    def test_nis_must_be_numeric(self):
        student = Student(nis='12A', name='Budi')
        with self.assertRaises(ValidationError):
            student.full_clean()

    def test_name_is_stripped_and_required(self):
        student = Student(nis='3001', name='   ')
        with self.assertRaises(ValidationError):
            student.full_clean()

    def test_billable_includes_students_without_active_flag(self):
        active = self._create_student(nis='4001')
        legacy = self._create_student(nis='4002', is_active=None)
        inactive = self._create_student(nis='4003', is_active=False)

        billable_ids = set(Student.objects.billable().values_list('id', flat=True))
        self.assertIn(active.id, billable_ids)
        self.assertIn(legacy.id, billable_ids)
        self.assertNotIn(inactive.id, billable_ids)
        self.assertTrue(legacy.is_billable)
        self.assertFalse(inactive.is_billable)
