def format_vnd(amount: int) -> str:
    """Format an integer VND amount with dot separators: 1500000 -> '1.500.000'"""
    return f"{amount:,}".replace(",", ".")


def parse_vnd(value: str) -> int | None:
    """Parse user input into integer VND: '1.500.000', '1,500,000' or '1500000'."""
    cleaned = value.strip().replace(".", "").replace(",", "").replace(" ", "")
    if cleaned.lower().endswith("đ"):
        cleaned = cleaned[:-1]
    if not cleaned.isdigit():
        return None
    return int(cleaned)
