from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate, validates_schema


class PeriodRequestSchema(Schema):
    """Shared base: subclasses name their date fields via START_FIELD / END_FIELD."""

    START_FIELD = "period_start"
    END_FIELD = "period_end"

    class Meta:
        unknown = EXCLUDE

    @validates_schema
    def validate_period(self, data, **kwargs):
        start = data.get(self.START_FIELD)
        end = data.get(self.END_FIELD)
        if start and end and end < start:
            raise ValidationError(f"{self.END_FIELD} must be >= {self.START_FIELD}", field_name=self.END_FIELD)


class PayoutRequestSchema(PeriodRequestSchema):
    driver_id = fields.Int(required=True, strict=False, validate=validate.Range(min=1))
    period_start = fields.Date(load_default=None, allow_none=True)
    period_end = fields.Date(load_default=None, allow_none=True)


class SinglePayslipRequestSchema(PeriodRequestSchema):
    START_FIELD = "period_start_date"
    END_FIELD = "period_end_date"

    driver_id = fields.Int(required=True, strict=False, validate=validate.Range(min=1))
    period_start_date = fields.Date(required=True)
    period_end_date = fields.Date(required=True)


class BatchPayslipRequestSchema(PeriodRequestSchema):
    invoice_number = fields.Str(load_default=None, allow_none=True, validate=validate.Length(min=1, max=64))

    @pre_load
    def blank_means_all(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("invoice_number"), str):
            data = dict(data)
            data["invoice_number"] = data["invoice_number"].strip() or None
        return data


class MarkPaidRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    payment_reference = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    paid_at = fields.DateTime(load_default=None, allow_none=True)
