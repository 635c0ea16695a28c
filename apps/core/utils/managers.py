from django.db import models
from django.db.models import F, Q


class StudentQuerySet(models.QuerySet):
    def billable(self):
        # Rows without an explicit flag predate the flag and count as active.
        return self.filter(Q(is_active=True) | Q(is_active__isnull=True))

    def in_class(self, student_class):
        return self.filter(student_class=student_class)


class StudentManager(models.Manager):
    def get_queryset(self):
        return StudentQuerySet(self.model, using=self._db)

    def billable(self):
        return self.get_queryset().billable()


class BillQuerySet(models.QuerySet):
    def unpaid(self):
        return self.filter(status=self.model.STATUS_UNPAID)

    def paid(self):
        return self.filter(status=self.model.STATUS_PAID)

    def for_period(self, year, month):
        return self.filter(year=year, month=month)

    def for_student(self, student_id):
        return self.filter(student_id=student_id)

    def for_class(self, student_class):
        if not student_class:
            return self
        return self.filter(student_class=student_class)

    def update_versioned(self, pk, expected_version, **changes):
        """Apply ``changes`` only while the row still carries ``expected_version``.

        Returns True when the row was written. The version is bumped in the
        same statement so a second writer holding the old version matches
        nothing.
        """
        updated = self.filter(pk=pk, version=expected_version).update(
            version=F('version') + 1,
            **changes,
        )
        return updated == 1


class BillManager(models.Manager.from_queryset(BillQuerySet)):
    pass
