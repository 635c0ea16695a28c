from django import forms

from apps.core.students.models import Student

from .reports import PERIOD_STATUS_ALL, PERIOD_STATUS_FILTERS


def _class_choices():
    return [('', 'All classes')] + list(Student.CLASS_CHOICES)


class BillPaymentForm(forms.Form):
    # Positivity and the remaining-balance limit are enforced by the ledger.
    amount = forms.DecimalField(max_digits=12, decimal_places=2)


class ManualBillForm(forms.Form):
    student_id = forms.IntegerField(min_value=1)
    spp_amount = forms.DecimalField(max_digits=12, decimal_places=2, required=False)
    catering_amount = forms.DecimalField(max_digits=12, decimal_places=2, required=False)
    description = forms.CharField(max_length=255, required=False)
    tag = forms.CharField(max_length=64, required=False)

    def clean(self):
        cleaned_data = super().clean()
        if cleaned_data.get('spp_amount') is None and cleaned_data.get('catering_amount') is None:
            raise forms.ValidationError('Provide an SPP or catering amount.')
        return cleaned_data


class ReportFilterForm(forms.Form):
    CLASS_PARAM = 'class'

    student_class = forms.ChoiceField(required=False, choices=_class_choices)

    def __init__(self, data=None, *args, **kwargs):
        # Query strings name the filter ``class``, which cannot be a field name.
        if data is not None and self.CLASS_PARAM in data and 'student_class' not in data:
            data = data.copy()
            data['student_class'] = data[self.CLASS_PARAM]
        super().__init__(data, *args, **kwargs)


class PeriodReportForm(ReportFilterForm):
    year = forms.IntegerField(min_value=2000, max_value=2100)
    month = forms.IntegerField(min_value=1, max_value=12)
    status = forms.ChoiceField(
        required=False,
        choices=[(value, value.title()) for value in PERIOD_STATUS_FILTERS],
    )

    def clean_status(self):
        return self.cleaned_data.get('status') or PERIOD_STATUS_ALL
