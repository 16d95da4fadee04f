import enum

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


class PrintableEnum(enum.Enum):
    def __str__(self) -> str:
        return self.name

    __repr__ = __str__


def fits_i64(n: int) -> bool:
    return I64_MIN <= n <= I64_MAX


def truncating_div(a: int, b: int) -> int:
    """Integer division rounding toward zero (Python's // floors)"""
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def point_at(code: str, idx: int, context: int = 10) -> list[str]:
    """Two lines: a snippet of code around idx and a caret under it"""
    print_start_idx = max(0, idx - context)
    print_ellipsis_pre = print_start_idx > 0
    print_end_idx = min(len(code), idx + context)
    print_ellipsis_post = print_end_idx < len(code)
    return [
        ("..." if print_ellipsis_pre else "")
        + code[print_start_idx:print_end_idx]
        + ("..." if print_ellipsis_post else ""),
        " " * (idx - print_start_idx + (3 if print_ellipsis_pre else 0)) + "^",
    ]
