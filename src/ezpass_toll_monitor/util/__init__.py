from .dates import days_in_month, parse_us_date, parse_us_datetime
from .money import money_str, parse_toll_amount, quantize_cents

__all__ = [
    "days_in_month",
    "parse_us_date",
    "parse_us_datetime",
    "money_str",
    "parse_toll_amount",
    "quantize_cents",
]
