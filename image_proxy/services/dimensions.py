import math


def _round(value: float) -> int:
    # Half away from zero; builtin round() is banker's rounding
    return max(1, math.floor(value + 0.5))


def compute_target_size(
    original_width: int,
    original_height: int,
    target_width: int | None = None,
    target_height: int | None = None,
) -> tuple[int, int]:
    """
    Fit the original size within the requested bounds, keeping the aspect ratio.

    Never crops and never distorts. With both bounds the result fits inside
    the box on both axes; with one bound the other side follows the ratio.
    Returns the original size unchanged when no bound is given.
    """
    if not target_width and not target_height:
        return original_width, original_height

    aspect_ratio = original_width / original_height

    if target_width and target_height:
        if aspect_ratio > target_width / target_height:
            return target_width, _round(target_width / aspect_ratio)
        return _round(target_height * aspect_ratio), target_height

    if target_width:
        return target_width, _round(target_width / aspect_ratio)

    return _round(target_height * aspect_ratio), target_height
