import hashlib
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from wasteflow.processor.models import RecordProjection

_QUANTITY_PLACES = Decimal("0.001")


def compute_dedup_key(
    operation_date: date | None,
    resource_label: str | None,
    origin_label: str | None,
    destination_label: str | None,
    quantity: Decimal,
) -> str:
    """MD5 of the lower-cased ``date|resource|origin|destination|qty`` line.

    The quantity takes part with exactly three decimals, so 12.3401 and
    12.340 yield the same key.
    """
    rounded = Decimal(quantity).quantize(_QUANTITY_PLACES, rounding=ROUND_HALF_UP)
    parts = (
        operation_date.isoformat() if operation_date is not None else "",
        resource_label or "",
        origin_label or "",
        destination_label or "",
        f"{rounded:.3f}",
    )
    base = "|".join(parts).lower()
    return hashlib.md5(base.encode("utf-8")).hexdigest()


def dedup_key(projection: RecordProjection) -> str:
    return compute_dedup_key(
        projection.operation_date,
        projection.resource_label,
        projection.origin_label,
        projection.destination_label,
        projection.quantity,
    )
