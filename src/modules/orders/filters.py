import django_filters

from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    payment_method = django_filters.ChoiceFilter(choices=PaymentMethod.choices)
    customer = django_filters.NumberFilter(field_name="customer_id")
    shop = django_filters.UUIDFilter(
        field_name="items__product__shop_id", distinct=True
    )
    delivery_boy = django_filters.CharFilter(field_name="assigned_to__boy_id")
    assigned = django_filters.BooleanFilter(
        field_name="assigned_to", lookup_expr="isnull", exclude=True
    )
    paid_to_shop = django_filters.BooleanFilter()
    paid_to_admin = django_filters.BooleanFilter()
    start_date = django_filters.DateFilter(field_name="order_date", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="order_date", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "payment_method",
            "customer",
            "shop",
            "delivery_boy",
            "assigned",
            "paid_to_shop",
            "paid_to_admin",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
