"""
Value and message formatters.

Display formatting for currency, counts, durations and holder shares, plus
conversion of a HealthMetrics record into a Telegram HTML message.
"""

from html import escape

from tokenhealth.core.models import Category, HealthMetrics, ScanHistoryRecord

# Score band emoji, best first
SCORE_EMOJI = (
    (80, "🟢"),
    (60, "🟡"),
    (40, "🟠"),
    (0, "🔴"),
)

CATEGORY_LABEL = {
    Category.SECURITY: "Security",
    Category.LIQUIDITY: "Liquidity",
    Category.TOKENOMICS: "Tokenomics",
    Category.COMMUNITY: "Community",
    Category.DEVELOPMENT: "Development",
}


def format_currency(value: float) -> str:
    """
    Format a USD amount with a B/M/K suffix.

    >>> format_currency(1_234_567_890)
    '$1.23B'
    >>> format_currency(999.5)
    '$999.50'
    """
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.2f}K"
    return f"${value:.2f}"


def format_number(value: int) -> str:
    """
    Format a count with an M/K suffix.

    >>> format_number(1_500_000)
    '1.5M'
    >>> format_number(950)
    '950'
    """
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def format_days(days: int) -> str:
    """'1 day' / 'N days'."""
    return "1 day" if days == 1 else f"{days} days"


def format_basis_points(bp: int) -> str:
    """
    Format basis points as a percentage using integer arithmetic only.

    >>> format_basis_points(4250)
    '42.50%'
    """
    return f"{bp // 100}.{bp % 100:02d}%"


def score_emoji(score: int) -> str:
    for threshold, emoji in SCORE_EMOJI:
        if score >= threshold:
            return emoji
    return SCORE_EMOJI[-1][1]


def format_health_report(metrics: HealthMetrics) -> str:
    """
    Format a health report as Telegram message.

    Creates a structured, readable message with:
    - Token identity and composite score
    - The five category scores
    - Key market, liquidity and contract facts
    - Data quality note

    Uses HTML formatting (bold, italic, code).

    Args:
        metrics: Assembled health report

    Returns:
        Formatted HTML string for Telegram
    """
    header = (
        f"{score_emoji(metrics.health_score)} <b>{escape(metrics.name)} "
        f"({escape(metrics.symbol)})</b>\n"
        f"Health score: <b>{metrics.health_score}/100</b>"
    )

    category_lines = "\n".join(
        f"• {CATEGORY_LABEL[cat]}: {metrics.categories[cat].value}"
        for cat in Category
        if cat in metrics.categories
    )

    facts = [
        f"Market cap: {metrics.market_cap}",
        f"TVL: {metrics.tvl}",
        f"Liquidity lock: {metrics.liquidity_lock}",
        f"Top 10 holders: {metrics.top_holders_percentage}",
        f"Audit: {metrics.audit_status.value}",
        f"Followers: {metrics.social_followers}",
        f"Code activity: {metrics.code_activity}",
    ]
    facts_block = "\n".join(f"• {escape(fact)}" for fact in facts)

    message = f"{header}\n\n<b>Categories:</b>\n{category_lines}\n\n<b>Key metrics:</b>\n{facts_block}"

    if metrics.contract_address:
        message += f"\n\n<code>{escape(metrics.contract_address)}</code> ({escape(metrics.network)})"

    if metrics.data_quality.value == "partial":
        message += "\n\n<i>Partial data: pool and TVL sources were unavailable.</i>"

    return message


def format_history(records: list[ScanHistoryRecord]) -> str:
    """Format the caller's recent scans as a short list."""
    lines = [
        f"{score_emoji(r.health_score)} {escape(r.symbol)}: {r.health_score}/100"
        for r in records
    ]
    return "<b>Recent scans:</b>\n" + "\n".join(lines)
