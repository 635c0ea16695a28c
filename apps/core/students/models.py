from django.core.exceptions import ValidationError
from django.db import models

from apps.core.utils.managers import StudentManager


CLASS_OPTIONS = (
    'Kelas 1',
    'Kelas 2',
    'Kelas 3',
    'Kelas 4',
    'Kelas 5',
    'Kelas 6',
)


class Student(models.Model):
    CLASS_CHOICES = tuple((option, option) for option in CLASS_OPTIONS)

    nis = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=150)
    student_class = models.CharField(max_length=20, choices=CLASS_CHOICES, default=CLASS_OPTIONS[0])
    parent_name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(null=True, blank=True, default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StudentManager()

    class Meta:
        ordering = ['name', 'id']
        indexes = [
            models.Index(fields=['student_class', 'is_active']),
        ]

    @property
    def is_billable(self):
        return self.is_active is not False

    def clean(self):
        super().clean()
        if self.nis:
            self.nis = self.nis.strip()
        if not self.nis:
            raise ValidationError({'nis': 'NIS is required.'})
        if not self.nis.isdigit():
            raise ValidationError({'nis': 'NIS must contain digits only.'})

        if self.name:
            self.name = self.name.strip()
        if not self.name:
            raise ValidationError({'name': 'Student name is required.'})

    def __str__(self):
        return f"{self.nis} - {self.name}"
