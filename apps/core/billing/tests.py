from datetime import date, datetime
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import IntegrityError, OperationalError, transaction
from django.test import Client, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from apps.core.students.models import Student

from .exceptions import (
    AlreadyPaidError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from .models import Bill, FeeSettings, GenerationRecord
from .reports import arrears_report, dashboard_summary, period_report, student_bills
from .services import (
    GENERATION_ALREADY_DONE,
    GENERATION_DONE,
    GENERATION_NO_STUDENTS,
    GENERATION_NOT_CONFIGURED,
    GENERATION_NOT_DUE,
    apply_payment,
    check_and_generate_bills,
    create_manual_bill,
    generate_period_bills,
    should_generate,
    try_claim_period,
)


def _aware(year, month, day, hour=8):
    return timezone.make_aware(datetime(year, month, day, hour, 0))


class BillingBaseTestCase(TestCase):
    def setUp(self):
        self.fee_settings = FeeSettings.objects.create(
            spp_amount=Decimal('50000.00'),
            catering_amount=Decimal('20000.00'),
            billing_day=10,
        )
        self.students = [
            Student.objects.create(
                nis=f'10{index}',
                name=f'Santri {index}',
                student_class='Kelas 1' if index % 2 else 'Kelas 2',
            )
            for index in range(1, 6)
        ]

    def _bill(self, student=None, spp='50000.00', catering='20000.00'):
        return create_manual_bill(
            student_id=(student or self.students[0]).id,
            spp_amount=spp,
            catering_amount=catering,
        )

    def assert_bill_invariants(self, bill):
        self.assertEqual(bill.total_amount, bill.spp_amount + bill.catering_amount)
        self.assertTrue(Decimal('0') <= bill.amount_paid <= bill.total_amount)
        self.assertEqual(bill.status == Bill.STATUS_PAID, bill.amount_paid >= bill.total_amount)
        self.assertEqual(bill.paid_at is not None, bill.status == Bill.STATUS_PAID)


class PeriodGateTests(BillingBaseTestCase):
    def test_should_generate_respects_billing_day(self):
        self.assertFalse(should_generate(date(2026, 10, 9), 10))
        self.assertTrue(should_generate(date(2026, 10, 10), 10))
        self.assertTrue(should_generate(date(2026, 10, 28), 10))

    def test_should_generate_false_without_billing_day(self):
        self.assertFalse(should_generate(date(2026, 10, 20), None))
        self.assertFalse(should_generate(date(2026, 10, 20), 0))

    def test_try_claim_period_creates_marker_once(self):
        self.assertTrue(try_claim_period('2026-10', year=2026, month=10, count=5))
        self.assertFalse(try_claim_period('2026-10', year=2026, month=10, count=9))

        record = GenerationRecord.objects.get(pk='2026-10')
        self.assertEqual(record.count, 5)

    def test_generation_record_is_write_once(self):
        try_claim_period('2026-10', year=2026, month=10, count=5)
        record = GenerationRecord.objects.get(pk='2026-10')

        record.count = 7
        with self.assertRaises(ValidationError):
            record.save()
        with self.assertRaises(ValidationError):
            record.delete()


class BillGenerationTests(BillingBaseTestCase):
    def test_before_billing_day_creates_nothing(self):
        result = check_and_generate_bills(now=_aware(2026, 10, 9))

        self.assertEqual(result['status'], GENERATION_NOT_DUE)
        self.assertFalse(Bill.objects.exists())
        self.assertFalse(GenerationRecord.objects.exists())

    def test_on_billing_day_creates_one_bill_per_active_student(self):
        result = check_and_generate_bills(now=_aware(2026, 10, 10))

        self.assertEqual(result['status'], GENERATION_DONE)
        self.assertEqual(result['created'], 5)
        bills = Bill.objects.filter(period_key='2026-10')
        self.assertEqual(bills.count(), 5)
        for bill in bills:
            self.assertEqual(bill.total_amount, Decimal('70000.00'))
            self.assertEqual(bill.status, Bill.STATUS_UNPAID)
            self.assertEqual(bill.amount_paid, Decimal('0.00'))
            self.assertIsNone(bill.paid_at)
            self.assertEqual(bill.kind, Bill.KIND_MONTHLY)
            self.assertEqual((bill.year, bill.month), (2026, 10))
            self.assert_bill_invariants(bill)

        record = GenerationRecord.objects.get(pk='2026-10')
        self.assertEqual(record.count, 5)

    def test_rerun_same_period_is_a_no_op(self):
        check_and_generate_bills(now=_aware(2026, 10, 10))
        result = check_and_generate_bills(now=_aware(2026, 10, 10))

        self.assertEqual(result['status'], GENERATION_ALREADY_DONE)
        self.assertEqual(Bill.objects.count(), 5)
        self.assertEqual(GenerationRecord.objects.count(), 1)

    def test_inactive_students_are_skipped_and_unset_flag_counts_as_active(self):
        self.students[0].is_active = False
        self.students[0].save(update_fields=['is_active'])
        self.students[1].is_active = None
        self.students[1].save(update_fields=['is_active'])

        check_and_generate_bills(now=_aware(2026, 10, 15))

        billed = set(Bill.objects.values_list('student_id', flat=True))
        self.assertNotIn(self.students[0].id, billed)
        self.assertIn(self.students[1].id, billed)
        self.assertEqual(GenerationRecord.objects.get(pk='2026-10').count, 4)

    def test_bill_amounts_are_snapshots(self):
        check_and_generate_bills(now=_aware(2026, 10, 10))

        self.fee_settings.spp_amount = Decimal('90000.00')
        self.fee_settings.save()

        bill = Bill.objects.filter(period_key='2026-10').first()
        self.assertEqual(bill.spp_amount, Decimal('50000.00'))
        self.assertEqual(bill.total_amount, Decimal('70000.00'))

        bill.spp_amount = Decimal('90000.00')
        with self.assertRaises(ValidationError):
            bill.full_clean()

    def test_saving_changed_amounts_is_rejected(self):
        bill = self._bill()

        bill.spp_amount = Decimal('90000.00')
        with self.assertRaises(ValidationError):
            bill.save()

        bill.refresh_from_db()
        self.assertEqual(bill.spp_amount, Decimal('50000.00'))
        self.assertEqual(bill.total_amount, Decimal('70000.00'))
        self.assert_bill_invariants(bill)

        bill.description = 'Tagihan Tambahan (Revisi)'
        bill.save()
        bill.refresh_from_db()
        self.assertEqual(bill.description, 'Tagihan Tambahan (Revisi)')

    def test_total_must_equal_sum_at_database_level(self):
        bill = self._bill()

        with self.assertRaises(IntegrityError), transaction.atomic():
            Bill.objects.filter(pk=bill.pk).update(spp_amount=Decimal('90000.00'))

        bill.refresh_from_db()
        self.assertEqual(bill.spp_amount, Decimal('50000.00'))

    @override_settings(BILLING_BATCH_SIZE=5000)
    def test_batch_size_is_capped_at_five_hundred(self):
        Student.objects.bulk_create([
            Student(nis=f'2{index:04d}', name=f'Santri Massal {index}', student_class='Kelas 3')
            for index in range(1000)
        ])
        original_bulk_create = Bill.objects.bulk_create
        chunk_sizes = []

        def recording_bulk_create(objs, *args, **kwargs):
            chunk_sizes.append(len(objs))
            return original_bulk_create(objs, *args, **kwargs)

        with mock.patch.object(Bill.objects, 'bulk_create', side_effect=recording_bulk_create):
            result = generate_period_bills(year=2026, month=10)

        self.assertEqual(chunk_sizes, [500, 500, 5])
        self.assertEqual(result['created'], 1005)
        self.assertEqual(Bill.objects.filter(period_key='2026-10').count(), 1005)

    def test_not_configured_without_fee_settings(self):
        self.fee_settings.delete()

        result = check_and_generate_bills(now=_aware(2026, 10, 20))
        self.assertEqual(result['status'], GENERATION_NOT_CONFIGURED)
        self.assertFalse(Bill.objects.exists())

    def test_no_students_leaves_period_unclaimed(self):
        Student.objects.update(is_active=False)

        result = check_and_generate_bills(now=_aware(2026, 10, 20))
        self.assertEqual(result['status'], GENERATION_NO_STUDENTS)
        self.assertFalse(GenerationRecord.objects.exists())

    def test_zero_fee_total_is_rejected_before_writing(self):
        self.fee_settings.spp_amount = Decimal('0.00')
        self.fee_settings.catering_amount = Decimal('0.00')
        self.fee_settings.save()

        with self.assertRaises(ValidationError):
            check_and_generate_bills(now=_aware(2026, 10, 20))
        self.assertFalse(Bill.objects.exists())
        self.assertFalse(GenerationRecord.objects.exists())

    def test_accepts_plain_date(self):
        result = check_and_generate_bills(now=date(2026, 11, 10))
        self.assertEqual(result['period_key'], '2026-11')
        self.assertEqual(result['status'], GENERATION_DONE)

    @override_settings(BILLING_BATCH_SIZE=2)
    def test_failed_chunk_leaves_period_unclaimed_and_retry_does_not_duplicate(self):
        original_bulk_create = Bill.objects.bulk_create
        calls = {'count': 0}

        def flaky_bulk_create(objs, *args, **kwargs):
            calls['count'] += 1
            if calls['count'] == 2:
                raise OperationalError('database is locked')
            return original_bulk_create(objs, *args, **kwargs)

        with mock.patch.object(Bill.objects, 'bulk_create', side_effect=flaky_bulk_create):
            with self.assertRaises(StoreUnavailableError):
                generate_period_bills(year=2026, month=10)

        self.assertEqual(Bill.objects.filter(period_key='2026-10').count(), 2)
        self.assertFalse(GenerationRecord.objects.exists())

        result = generate_period_bills(year=2026, month=10)

        self.assertTrue(result['claimed'])
        self.assertEqual(result['created'], 3)
        self.assertEqual(Bill.objects.filter(period_key='2026-10').count(), 5)
        for student in self.students:
            self.assertEqual(Bill.objects.filter(period_key='2026-10', student=student).count(), 1)
        self.assertEqual(GenerationRecord.objects.get(pk='2026-10').count, 5)

    def test_concurrent_run_that_loses_the_claim_adds_nothing(self):
        generate_period_bills(year=2026, month=10)

        result = generate_period_bills(year=2026, month=10)

        self.assertFalse(result['claimed'])
        self.assertEqual(result['created'], 0)
        self.assertEqual(Bill.objects.count(), 5)
        self.assertEqual(GenerationRecord.objects.count(), 1)


class ManualBillTests(BillingBaseTestCase):
    def test_manual_bill_bypasses_period_gate(self):
        check_and_generate_bills(now=_aware(2026, 10, 10))

        bill = create_manual_bill(
            student_id=self.students[0].id,
            spp_amount='25000',
            catering_amount='0',
            description='Tagihan Awal / Pendaftaran',
        )

        self.assertEqual(bill.kind, Bill.KIND_MANUAL)
        self.assertTrue(bill.period_key.startswith('MANUAL_'))
        self.assertEqual(bill.total_amount, Decimal('25000.00'))
        self.assertEqual(bill.description, 'Tagihan Awal / Pendaftaran')
        self.assertEqual(Bill.objects.for_student(self.students[0].id).count(), 2)
        self.assert_bill_invariants(bill)

    def test_manual_bills_are_never_deduplicated(self):
        first = self._bill()
        second = self._bill()

        self.assertNotEqual(first.period_key, second.period_key)
        self.assertEqual(Bill.objects.filter(kind=Bill.KIND_MANUAL).count(), 2)

    def test_reused_tag_for_same_student_conflicts(self):
        create_manual_bill(student_id=self.students[0].id, spp_amount='1000', catering_amount='0', tag='REG-2026')

        with self.assertRaises(ConflictError):
            create_manual_bill(student_id=self.students[0].id, spp_amount='1000', catering_amount='0', tag='REG-2026')

    def test_manual_bill_validation(self):
        with self.assertRaises(ValidationError):
            create_manual_bill(student_id=self.students[0].id, spp_amount='0', catering_amount='0')
        with self.assertRaises(ValidationError):
            create_manual_bill(student_id=self.students[0].id, spp_amount='-5', catering_amount='100')
        with self.assertRaises(NotFoundError):
            create_manual_bill(student_id=999999, spp_amount='100', catering_amount='0')


class PaymentLedgerTests(BillingBaseTestCase):
    def test_partial_then_full_payment_then_rejected(self):
        bill = self._bill()

        bill = apply_payment(bill_id=bill.id, amount=40000)
        self.assertEqual(bill.amount_paid, Decimal('40000.00'))
        self.assertEqual(bill.status, Bill.STATUS_UNPAID)
        self.assertTrue(bill.is_partially_paid)
        self.assertIsNone(bill.paid_at)
        self.assertIsNotNone(bill.last_payment_at)
        self.assert_bill_invariants(bill)

        bill = apply_payment(bill_id=bill.id, amount=30000)
        self.assertEqual(bill.amount_paid, Decimal('70000.00'))
        self.assertEqual(bill.status, Bill.STATUS_PAID)
        self.assertIsNotNone(bill.paid_at)
        self.assertFalse(bill.is_partially_paid)
        self.assert_bill_invariants(bill)

        paid_at = bill.paid_at
        with self.assertRaises(AlreadyPaidError):
            apply_payment(bill_id=bill.id, amount=1)

        bill.refresh_from_db()
        self.assertEqual(bill.amount_paid, Decimal('70000.00'))
        self.assertEqual(bill.paid_at, paid_at)

    def test_overpayment_is_rejected_without_mutation(self):
        bill = self._bill()

        with self.assertRaises(ValidationError):
            apply_payment(bill_id=bill.id, amount=80000)

        bill.refresh_from_db()
        self.assertEqual(bill.amount_paid, Decimal('0.00'))
        self.assertEqual(bill.status, Bill.STATUS_UNPAID)
        self.assertEqual(bill.version, 0)

    def test_non_positive_and_invalid_amounts_are_rejected(self):
        bill = self._bill()
        for amount in (0, -100, 'abc', None, 'NaN'):
            with self.assertRaises(ValidationError):
                apply_payment(bill_id=bill.id, amount=amount)

    def test_missing_bill(self):
        with self.assertRaises(NotFoundError):
            apply_payment(bill_id=424242, amount=1000)

    def test_stale_version_raises_conflict(self):
        bill = self._bill()
        Bill.objects.filter(pk=bill.pk).update(version=5)

        self.assertFalse(
            Bill.objects.update_versioned(bill.pk, 0, amount_paid=Decimal('1000.00'))
        )
        bill.refresh_from_db()
        self.assertEqual(bill.amount_paid, Decimal('0.00'))

        with mock.patch.object(Bill.objects, 'update_versioned', return_value=False):
            with self.assertRaises(ConflictError):
                apply_payment(bill_id=bill.id, amount=1000)

        bill.refresh_from_db()
        self.assertEqual(bill.amount_paid, Decimal('0.00'))

    def test_each_payment_bumps_version(self):
        bill = self._bill()
        apply_payment(bill_id=bill.id, amount=10000)
        bill = apply_payment(bill_id=bill.id, amount=10000)
        self.assertEqual(bill.version, 2)

    def test_store_failure_surfaces_as_store_unavailable(self):
        bill = self._bill()
        with mock.patch.object(Bill.objects, 'update_versioned', side_effect=OperationalError('disk I/O error')):
            with self.assertRaises(StoreUnavailableError):
                apply_payment(bill_id=bill.id, amount=1000)

        bill.refresh_from_db()
        self.assertEqual(bill.amount_paid, Decimal('0.00'))

    def test_paid_bill_cannot_be_reopened(self):
        bill = self._bill()
        bill = apply_payment(bill_id=bill.id, amount=70000)

        bill.status = Bill.STATUS_UNPAID
        bill.paid_at = None
        with self.assertRaises(ValidationError):
            bill.full_clean()


class ArrearsAggregatorTests(BillingBaseTestCase):
    def setUp(self):
        super().setUp()
        generate_period_bills(year=2026, month=9)
        generate_period_bills(year=2026, month=10)

        self.first = self.students[0]
        september = Bill.objects.get(student=self.first, period_key='2026-09')
        october = Bill.objects.get(student=self.first, period_key='2026-10')
        apply_payment(bill_id=september.id, amount=20000)
        apply_payment(bill_id=october.id, amount=70000)

    def test_arrears_span_all_periods(self):
        report = arrears_report()

        rows = {row['student_id']: row for row in report['rows']}
        self.assertEqual(len(rows), 5)
        self.assertEqual(rows[self.first.id]['total_debt'], Decimal('50000.00'))
        self.assertEqual(len(rows[self.first.id]['bills']), 1)
        self.assertEqual(rows[self.students[1].id]['total_debt'], Decimal('140000.00'))
        self.assertEqual(len(rows[self.students[1].id]['bills']), 2)

        expected_total = sum(
            (bill.total_amount - bill.amount_paid for bill in Bill.objects.unpaid()),
            Decimal('0.00'),
        )
        self.assertEqual(report['grand_total'], expected_total)
        self.assertEqual(report['grand_total'], sum(row['total_debt'] for row in report['rows']))

    def test_arrears_class_filter(self):
        report = arrears_report(class_filter='Kelas 2')

        self.assertEqual(len(report['rows']), 2)
        self.assertTrue(all(row['student_class'] == 'Kelas 2' for row in report['rows']))

    def test_period_report_rows_and_totals(self):
        report = period_report(year=2026, month=10)

        self.assertEqual(len(report['rows']), 5)
        self.assertEqual(report['totals']['spp_amount'], Decimal('250000.00'))
        self.assertEqual(report['totals']['catering_amount'], Decimal('100000.00'))
        self.assertEqual(report['totals']['total_amount'], Decimal('350000.00'))

    def test_period_report_paid_filter(self):
        report = period_report(year=2026, month=10, status='paid')

        self.assertEqual(len(report['rows']), 1)
        self.assertEqual(report['rows'][0]['student_id'], self.first.id)
        self.assertEqual(report['totals']['total_amount'], Decimal('70000.00'))

        self.assertEqual(period_report(year=2026, month=9, status='paid')['rows'], [])

    def test_period_report_rejects_unpaid_status(self):
        with self.assertRaises(ValidationError):
            period_report(year=2026, month=10, status='unpaid')

    def test_student_bills_newest_first(self):
        rows = student_bills(self.first.id)

        self.assertEqual([row['period_key'] for row in rows], ['2026-10', '2026-09'])
        with self.assertRaises(NotFoundError):
            student_bills(999999)

    def test_dashboard_summary(self):
        summary = dashboard_summary()

        self.assertEqual(summary['total_students'], 5)
        self.assertEqual(summary['unpaid_bills'], 9)
        self.assertEqual(summary['total_unpaid_amount'], Decimal('610000.00'))
        self.assertEqual(summary['class_counts']['Kelas 1'], 3)
        self.assertEqual(summary['class_counts']['Kelas 2'], 2)
        self.assertEqual(summary['class_counts']['Kelas 6'], 0)


class BillingViewTests(BillingBaseTestCase):
    def test_generate_endpoint(self):
        billing_day = _aware(2026, 10, 10)
        with mock.patch('django.utils.timezone.now', return_value=billing_day):
            response = self.client.post(reverse('bill_generate_core'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], GENERATION_DONE)
        self.assertEqual(response.json()['period_key'], '2026-10')
        self.assertEqual(Bill.objects.count(), 5)

    def test_generate_endpoint_ignores_client_date(self):
        before_billing_day = _aware(2026, 10, 5)
        with mock.patch('django.utils.timezone.now', return_value=before_billing_day):
            response = self.client.post(reverse('bill_generate_core'), {'date': '2027-01-10'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], GENERATION_NOT_DUE)
        self.assertEqual(response.json()['period_key'], '2026-10')
        self.assertFalse(Bill.objects.exists())
        self.assertFalse(GenerationRecord.objects.exists())

    def test_post_endpoints_accept_callers_without_csrf_token(self):
        client = Client(enforce_csrf_checks=True)
        bill = self._bill()

        response = client.post(reverse('bill_pay_core', kwargs={'bill_id': bill.id}), {'amount': '10000'})
        self.assertEqual(response.status_code, 200)

        response = client.post(reverse('manual_bill_create_core'), {
            'student_id': self.students[1].id,
            'catering_amount': '20000',
        })
        self.assertEqual(response.status_code, 201)

        with mock.patch('django.utils.timezone.now', return_value=_aware(2026, 10, 5)):
            response = client.post(reverse('bill_generate_core'))
        self.assertEqual(response.status_code, 200)

    def test_pay_endpoint_maps_errors(self):
        bill = self._bill()
        url = reverse('bill_pay_core', kwargs={'bill_id': bill.id})

        response = self.client.post(url, {'amount': '80000'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'invalid')

        response = self.client.post(url, {'amount': '70000'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['bill']['status'], Bill.STATUS_PAID)

        response = self.client.post(url, {'amount': '1'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'already_paid')

        response = self.client.post(reverse('bill_pay_core', kwargs={'bill_id': 999999}), {'amount': '1'})
        self.assertEqual(response.status_code, 404)

    def test_pay_endpoint_requires_post(self):
        bill = self._bill()
        response = self.client.get(reverse('bill_pay_core', kwargs={'bill_id': bill.id}))
        self.assertEqual(response.status_code, 405)

    def test_manual_bill_endpoint(self):
        response = self.client.post(reverse('manual_bill_create_core'), {
            'student_id': self.students[2].id,
            'spp_amount': '15000',
            'description': 'Tagihan Tambahan (Edit)',
        })

        self.assertEqual(response.status_code, 201)
        payload = response.json()['bill']
        self.assertEqual(payload['total_amount'], '15000.00')
        self.assertEqual(payload['kind'], Bill.KIND_MANUAL)

        response = self.client.post(reverse('manual_bill_create_core'), {
            'student_id': self.students[2].id,
            'spp_amount': '15000',
            'tag': 'REG',
        })
        self.assertEqual(response.status_code, 201)
        response = self.client.post(reverse('manual_bill_create_core'), {
            'student_id': self.students[2].id,
            'spp_amount': '15000',
            'tag': 'REG',
        })
        self.assertEqual(response.status_code, 409)

    def test_report_endpoints(self):
        generate_period_bills(year=2026, month=10)

        response = self.client.get(reverse('arrears_report_core'), {'student_class': 'Kelas 1'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['rows']), 3)

        response = self.client.get(reverse('arrears_report_core'), {'class': 'Kelas 2'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual({row['student_class'] for row in response.json()['rows']}, {'Kelas 2'})

        response = self.client.get(reverse('period_report_core'), {'year': 2026, 'month': 10, 'class': 'Kelas 2'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual({row['student_class'] for row in response.json()['rows']}, {'Kelas 2'})
        self.assertEqual(response.json()['totals']['total_amount'], '140000.00')

        response = self.client.get(reverse('arrears_report_core'), {'class': 'Kelas 9'})
        self.assertEqual(response.status_code, 400)

        response = self.client.get(reverse('period_report_core'), {'year': 2026, 'month': 10})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['totals']['total_amount'], '350000.00')

        response = self.client.get(reverse('period_report_core'), {'year': 2026, 'month': 13})
        self.assertEqual(response.status_code, 400)

        response = self.client.get(reverse('student_bill_list_core', kwargs={'student_id': self.students[0].id}))
        self.assertEqual(len(response.json()['bills']), 1)

        response = self.client.get(reverse('billing_dashboard_core'))
        self.assertEqual(response.json()['unpaid_bills'], 5)


class BillingCommandTests(BillingBaseTestCase):
    def test_generate_bills_command(self):
        out = StringIO()
        call_command('generate_bills', '--date', '2026-10-12', stdout=out)

        self.assertIn('Created 5 bill(s) for 2026-10', out.getvalue())

        out = StringIO()
        call_command('generate_bills', '--date', '2026-10-12', stdout=out)
        self.assertIn('already_generated', out.getvalue())
        self.assertEqual(Bill.objects.count(), 5)

    def test_seed_command(self):
        out = StringIO()
        call_command('seed', '--per-class', '2', stdout=out)

        self.assertEqual(Student.objects.count(), 5 + 12)
        self.assertEqual(FeeSettings.get_current().billing_day, 10)
        self.assertIn('Database seeding complete!', out.getvalue())
