"""
agent.tools.intents - Typed argument schemas for every workshop tool.

The set of tools is closed: INTENT_MODELS maps each declared tool name to
the pydantic model validating its argument bag, and ToolIntent is the
union of those models. Field names are the camelCase names the model is
told about in the tool declarations. Coercion (e.g. "500" -> 500.0)
happens here, once, when the intent is built.

Descriptions are part of the declaration contract and are written in the
assistant's working language.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from domain.exceptions import InvalidToolArgumentsError


class _Intent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class RegisterOrderIntent(_Intent):
    """Input schema for registerOrder."""

    name: str = Field(..., description='وصف الطلب، مثال: "سرير 160" أو "تنجيد كنبة".')
    clientName: str = Field(..., description="اسم العميل.")
    type: Literal["new", "old"] = Field(
        ..., description='نوع الشغل، "new" للشغل الجديد، "old" للصيانة أو المتابعات.',
    )
    totalCost: float = Field(..., ge=0, description="التكلفة الإجمالية للطلب.")
    paidAmount: float = Field(
        default=0.0, ge=0, description="المبلغ المدفوع مقدمًا عند تسجيل الطلب.",
    )
    laborCost: Optional[float] = Field(
        default=None, ge=0, description="قيمة المصنعية أو المكسب من الطلب.",
    )

    @field_validator("paidAmount", mode="before")
    @classmethod
    def null_paid_is_zero(cls, v: object) -> object:
        return 0.0 if v in (None, "") else v

    @field_validator("laborCost", mode="before")
    @classmethod
    def zero_labor_is_undeclared(cls, v: object) -> object:
        """A missing, empty or zero labor cost means "not declared"."""
        if v in (None, "", 0, "0"):
            return None
        return v


class RecordPaymentIntent(_Intent):
    """Input schema for recordPayment."""

    orderName: str = Field(..., description="اسم الطلب اللي العميل دفع له.")
    amount: float = Field(..., ge=0, description="المبلغ اللي اندفع.")


class UpdateOrderStatusIntent(_Intent):
    """Input schema for updateOrderStatus."""

    orderName: str = Field(..., description="اسم الطلب المطلوب تحديث حالته.")
    status: Literal["progress", "finished", "delivery"] = Field(
        ..., description="الحالة الجديدة للطلب.",
    )


class DeleteOrderIntent(_Intent):
    """Input schema for deleteOrder."""

    orderName: str = Field(..., description="اسم الطلب اللي هيتمسح.")


class SetDeliveryDateIntent(_Intent):
    """Input schema for setDeliveryDate. The date is parsed by the tool."""

    orderName: str = Field(..., description="اسم الطلب المراد تحديد موعد تسليمه.")
    deliveryDate: str = Field(
        ...,
        description=(
            'تاريخ التسليم بصيغة YYYY-MM-DD. يجب عليك تحويل التواريخ العامية مثل '
            '"بكرة" أو "الخميس الجاي" إلى هذه الصيغة قبل استدعاء الأداة.'
        ),
    )


class GetOrderDetailsIntent(_Intent):
    """Input schema for getOrderDetails."""

    orderName: str = Field(..., description="اسم الطلب أو اسم العميل المطلوب عرض حسابه.")


class DashboardSummaryIntent(_Intent):
    """getDashboardSummary takes no arguments."""


class AddExpenseIntent(_Intent):
    """Input schema for addExpense."""

    description: str = Field(
        ..., description='وصف المصروف، مثال: "فاتورة كهرباء" أو "إيجار الورشة".',
    )
    amount: float = Field(..., ge=0, description="قيمة المصروف بالجنيه.")


class CalculateDetailedCostIntent(_Intent):
    """Input schema for calculateDetailedCost."""

    items: dict[str, float] = Field(
        ...,
        description=(
            'قاموس يحتوي على أسماء الخامات والكمية المطلوبة. مثال: {"قماش": 5, "خشب": 2}'
        ),
    )


class AddNotepadEntryIntent(_Intent):
    """Input schema for addNotepadEntry."""

    clientName: str = Field(..., description="اسم العميل.")
    amount: float = Field(..., ge=0, description="المبلغ اللي على العميل.")


class UpdateNotepadEntryIntent(_Intent):
    """Input schema for updateNotepadEntry. Negative amountChange = payment."""

    clientName: str = Field(..., description="اسم العميل اللي حسابه هيتعدل.")
    amountChange: float = Field(
        ...,
        description="المبلغ اللي هيتغير. استخدم قيمة موجبة للزيادة وقيمة سالبة للنقصان (للدفع).",
    )


ToolIntent = Union[
    RegisterOrderIntent,
    RecordPaymentIntent,
    UpdateOrderStatusIntent,
    DeleteOrderIntent,
    SetDeliveryDateIntent,
    GetOrderDetailsIntent,
    DashboardSummaryIntent,
    AddExpenseIntent,
    CalculateDetailedCostIntent,
    AddNotepadEntryIntent,
    UpdateNotepadEntryIntent,
]

INTENT_MODELS: dict[str, type[_Intent]] = {
    "registerOrder": RegisterOrderIntent,
    "recordPayment": RecordPaymentIntent,
    "updateOrderStatus": UpdateOrderStatusIntent,
    "deleteOrder": DeleteOrderIntent,
    "setDeliveryDate": SetDeliveryDateIntent,
    "getOrderDetails": GetOrderDetailsIntent,
    "getDashboardSummary": DashboardSummaryIntent,
    "addExpense": AddExpenseIntent,
    "calculateDetailedCost": CalculateDetailedCostIntent,
    "addNotepadEntry": AddNotepadEntryIntent,
    "updateNotepadEntry": UpdateNotepadEntryIntent,
}


def parse_intent(tool_name: str, args: dict[str, Any] | None) -> ToolIntent:
    """Validate a raw argument bag into the tool's typed intent.

    Raises:
        KeyError: the tool name is not part of the declared set.
        InvalidToolArgumentsError: the arguments do not fit the schema.
    """
    model = INTENT_MODELS[tool_name]
    try:
        return model.model_validate(args or {})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidToolArgumentsError(tool_name, problems) from exc
