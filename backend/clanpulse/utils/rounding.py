from decimal import Decimal, ROUND_HALF_UP


def fixed(value: float | int, places: int = 1) -> float:
    quant = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP))


def whole(value: float | int) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def safe_ratio(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def mean(values: list[float] | tuple[float, ...]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)
