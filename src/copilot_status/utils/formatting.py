"""Text formatting helpers for console output."""

FILLED = "█"
EMPTY = "░"


def format_duration(seconds: int | float) -> str:
    """Format seconds as "1h 2m 3s", dropping leading zero units."""
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    remaining = seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m {remaining}s"
    if minutes > 0:
        return f"{minutes}m {remaining}s"
    return f"{remaining}s"


def progress_bar(percentage: float, width: int) -> str:
    filled = round(percentage / 100 * width)
    filled = max(0, min(width, filled))
    return FILLED * filled + EMPTY * (width - filled)


def scaled_bar(value: float, maximum: float, width: int) -> str:
    """Bar of ``width`` cells filled in proportion to value/maximum."""
    if maximum <= 0:
        return EMPTY * width
    return progress_bar(value / maximum * 100, width)


def truncate(text: str, limit: int = 50) -> str:
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


def metric_style(value: float, high: float, low: float) -> str:
    if value >= high:
        return "green"
    if value <= low:
        return "red"
    return "yellow"


def latency_style(latency_ms: float) -> str:
    if latency_ms <= 500:
        return "green"
    if latency_ms <= 1500:
        return "yellow"
    return "red"


def success_style(rate: float) -> str:
    if rate >= 0.95:
        return "green"
    if rate >= 0.85:
        return "yellow"
    return "red"


def cost_style(cost_per_hour: float, warning: float = 5.0, critical: float = 15.0) -> str:
    if cost_per_hour <= warning:
        return "green"
    if cost_per_hour <= critical:
        return "yellow"
    return "red"
