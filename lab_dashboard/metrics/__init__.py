from lab_dashboard.metrics.aggregation import (
    CategoryTotal,
    PeriodTotal,
    count_where,
    group_by_categorical,
    is_late,
    monthly_bucket,
    product_stock_total,
    stock_level,
    sum_field,
    top_n,
)

__all__ = [
    "CategoryTotal",
    "PeriodTotal",
    "count_where",
    "group_by_categorical",
    "is_late",
    "monthly_bucket",
    "product_stock_total",
    "stock_level",
    "sum_field",
    "top_n",
]
