"""
Centralized simulator message templates with i18n support.

Numeric decisions are made in the engine services; this module only
turns their outcomes into the human-readable detail, suggestion and
reason strings shown to merchandisers.

Usage:
    from services.simulation_messages import get_message

    message = get_message("stockout_detail", days=5)
"""

import os
from typing import Optional

from models.growth_simulation import FCResult, MoverSegment

# Language setting - defaults to Vietnamese
LANG = os.getenv("SIMULATION_LANGUAGE", "vi")

REASON_SEPARATOR = " · "
CATEGORY_REASON_SEPARATOR = ", "

MESSAGES = {
    "vi": {
        # Per-FC risk flags
        "stockout_detail": "Tồn kho chỉ đủ {days} ngày",
        "stockout_suggestion_hero": "Tăng depth sản xuất gấp",
        "stockout_suggestion": "Bổ sung sản xuất",
        "overstock_detail": "Tồn kho gấp {ratio:.1f}x nhu cầu",
        "overstock_suggestion_slow": "Markdown / Bundle",
        "overstock_suggestion": "Delay sản xuất",
        "slow_mover_detail": "Bán chậm ({velocity:.2f} SP/ngày) còn {on_hand:g} tồn, DOC {doc} ngày",
        "slow_mover_suggestion_blocked": "Không SX - rủi ro khóa cash",
        "slow_mover_suggestion": "Giảm SX / Bundle / Markdown",

        # Portfolio risk summary
        "concentration_detail": "Top {top_n} FC chiếm {share:.0f}% tổng SX",
        "concentration_suggestion": "Cân nhắc phân tán sản xuất",
        "summary_stockout_detail": "{count} FC hết hàng / sắp hết - cần bổ sung sản xuất",
        "summary_stockout_suggestion": "Ưu tiên: {examples}",
        "summary_overstock_detail": "{count} FC tồn kho vượt nhu cầu - rủi ro khóa cash",
        "summary_overstock_suggestion": "Markdown/Bundle: {examples}",
        "summary_slow_mover_detail": "{count} FC bán chậm còn tồn - DOC cao, rủi ro cash",
        "summary_slow_mover_suggestion": "Xem xét: {examples}",
        "examples_more": " (+{more} khác)",

        # FC reasons
        "reason_fast": "🔥 Bán nhanh ({velocity:.1f} SP/ngày)",
        "reason_average": "Tốc độ TB ({velocity:.1f} SP/ngày)",
        "reason_slow": "⚠ Bán chậm ({velocity:.2f} SP/ngày)",
        "reason_no_velocity": "⛔ Không có dữ liệu tốc độ bán",
        "reason_trend_up": "📈 Xu hướng tăng",
        "reason_trend_down": "📉 Xu hướng giảm",
        "reason_hero_manual": "⭐ Hero (manual)",
        "reason_hero_candidate": "🏆 Hero candidate",
        "reason_margin_high": "Margin cao ({margin:.0f}%)",
        "reason_margin_low": "⚠ Margin thấp ({margin:.0f}%)",
        "reason_blocked_slow": "⛔ Không SX - bán chậm, rủi ro khóa cash",
        "reason_limited_hero": "⚠ SX giới hạn - Hero nhưng velocity thấp",
        "reason_constrained_cash": "✂ Cắt SX do vượt giới hạn cash",
        "reason_constrained_capacity": "✂ Cắt SX do vượt công suất",

        # Hero gap
        "recoverability_ok": "Có thể đạt {pct:.0f}% target bằng tăng depth hero hiện có",
        "recoverability_gap": "Cần thêm ~{count} hero mới để đạt target",

        # Growth shape
        "category_fast": "Tốc độ bán tốt",
        "category_slow": "Luân chuyển chậm",
        "category_margin_high": "biên lợi nhuận cao",
        "category_margin_low": "biên lợi nhuận thấp",
        "category_revenue_share": "chiếm {share:.0f}% doanh thu",
        "category_momentum_up": "xu hướng tăng",
        "category_momentum_down": "cầu đang giảm",
        "category_overstock": "rủi ro tồn kho",
        "category_average": "Dữ liệu trung bình",
        "size_up": "tăng",
        "size_down": "giảm",
        "size_stable": "ổn định",
        "gravity_summary": "Phát hiện trọng lực tại: {category}{size}{band}",
        "gravity_size": " | Size {size}",
        "gravity_band": " | {band}",
        "gravity_none": "Chưa đủ dữ liệu.",
        "shape_statement": "Cấu trúc này tối đa hóa xác suất doanh thu và bảo vệ biên lợi nhuận.",
        "shape_statement_none": "Cần thêm dữ liệu.",
    },

    "en": {
        # Per-FC risk flags
        "stockout_detail": "Stock covers only {days} days",
        "stockout_suggestion_hero": "Increase production depth urgently",
        "stockout_suggestion": "Replenish production",
        "overstock_detail": "Stock is {ratio:.1f}x demand",
        "overstock_suggestion_slow": "Markdown / Bundle",
        "overstock_suggestion": "Delay production",
        "slow_mover_detail": "Slow seller ({velocity:.2f} units/day) with {on_hand:g} on hand, DOC {doc} days",
        "slow_mover_suggestion_blocked": "No production - cash lock-up risk",
        "slow_mover_suggestion": "Reduce production / Bundle / Markdown",

        # Portfolio risk summary
        "concentration_detail": "Top {top_n} FCs take {share:.0f}% of production",
        "concentration_suggestion": "Consider spreading production",
        "summary_stockout_detail": "{count} FCs out of / running out of stock - replenish",
        "summary_stockout_suggestion": "Priority: {examples}",
        "summary_overstock_detail": "{count} FCs stocked above demand - cash lock-up risk",
        "summary_overstock_suggestion": "Markdown/Bundle: {examples}",
        "summary_slow_mover_detail": "{count} slow FCs still holding stock - high DOC, cash risk",
        "summary_slow_mover_suggestion": "Review: {examples}",
        "examples_more": " (+{more} more)",

        # FC reasons
        "reason_fast": "🔥 Fast seller ({velocity:.1f} units/day)",
        "reason_average": "Average pace ({velocity:.1f} units/day)",
        "reason_slow": "⚠ Slow seller ({velocity:.2f} units/day)",
        "reason_no_velocity": "⛔ No sales velocity data",
        "reason_trend_up": "📈 Trending up",
        "reason_trend_down": "📉 Trending down",
        "reason_hero_manual": "⭐ Hero (manual)",
        "reason_hero_candidate": "🏆 Hero candidate",
        "reason_margin_high": "High margin ({margin:.0f}%)",
        "reason_margin_low": "⚠ Low margin ({margin:.0f}%)",
        "reason_blocked_slow": "⛔ No production - slow seller, cash lock-up risk",
        "reason_limited_hero": "⚠ Limited production - hero with low velocity",
        "reason_constrained_cash": "✂ Cut by cash cap",
        "reason_constrained_capacity": "✂ Cut by capacity cap",

        # Hero gap
        "recoverability_ok": "Existing heroes can reach {pct:.0f}% of target with more depth",
        "recoverability_gap": "About {count} new heroes needed to reach target",

        # Growth shape
        "category_fast": "Strong sell-through",
        "category_slow": "Slow turnover",
        "category_margin_high": "high margin",
        "category_margin_low": "low margin",
        "category_revenue_share": "{share:.0f}% of revenue",
        "category_momentum_up": "rising demand",
        "category_momentum_down": "falling demand",
        "category_overstock": "overstock risk",
        "category_average": "Average data",
        "size_up": "up",
        "size_down": "down",
        "size_stable": "stable",
        "gravity_summary": "Growth gravity at: {category}{size}{band}",
        "gravity_size": " | Size {size}",
        "gravity_band": " | {band}",
        "gravity_none": "Not enough data.",
        "shape_statement": "This structure maximizes revenue probability and protects margin.",
        "shape_statement_none": "More data needed.",
    },
}


def get_message(key: str, **kwargs) -> str:
    """
    Get translated message template and format with kwargs.

    Args:
        key: Message template key
        **kwargs: Format arguments for the template

    Returns:
        Formatted message string in the configured language
    """
    lang_messages = MESSAGES.get(LANG, MESSAGES["vi"])
    template = lang_messages.get(key, MESSAGES["vi"].get(key, key))
    try:
        return template.format(**kwargs)
    except KeyError:
        # Return template as-is if formatting fails
        return template


def get_lang() -> str:
    """Get current language setting."""
    return LANG


def format_examples(examples: list[str], count: int) -> str:
    """Join example FC names, noting how many more were left out."""
    text = ", ".join(examples)
    more = count - len(examples)
    if more > 0:
        text += get_message("examples_more", more=more)
    return text


def describe_fc(result: FCResult) -> str:
    """
    Build the reason line for one family code.

    Fragments: velocity pace, trend, hero status, margin extremes,
    and why production was blocked, limited or cut.
    """
    reasons = []

    if result.velocity >= 5:
        reasons.append(get_message("reason_fast", velocity=result.velocity))
    elif result.velocity >= 1:
        reasons.append(get_message("reason_average", velocity=result.velocity))
    elif result.velocity > 0:
        reasons.append(get_message("reason_slow", velocity=result.velocity))
    else:
        reasons.append(get_message("reason_no_velocity"))

    if result.velocity_trend == "up":
        reasons.append(get_message("reason_trend_up"))
    elif result.velocity_trend == "down":
        reasons.append(get_message("reason_trend_down"))

    if result.is_hero_manual:
        reasons.append(get_message("reason_hero_manual"))
    elif result.is_hero_calculated:
        reasons.append(get_message("reason_hero_candidate"))

    if result.margin_pct > 60:
        reasons.append(get_message("reason_margin_high", margin=result.margin_pct))
    elif result.margin_pct < 20:
        reasons.append(get_message("reason_margin_low", margin=result.margin_pct))

    slow = result.segment == MoverSegment.SLOW
    if result.production_qty == 0 and slow and not result.is_hero:
        reasons.append(get_message("reason_blocked_slow"))
    elif slow and result.is_hero and result.production_qty > 0:
        reasons.append(get_message("reason_limited_hero"))

    if result.constrained_by is not None:
        reasons.append(get_message(f"reason_constrained_{result.constrained_by.value}"))

    return REASON_SEPARATOR.join(reasons)


def describe_category(
    avg_velocity: float,
    max_velocity: float,
    avg_margin_pct: float,
    revenue_share: float,
    momentum_pct: float,
    overstock_ratio: float,
) -> str:
    """Build the reason line for one merchandising category."""
    reasons = []

    if avg_velocity >= max_velocity * 0.7:
        reasons.append(get_message("category_fast"))
    elif avg_velocity < max_velocity * 0.2:
        reasons.append(get_message("category_slow"))

    if avg_margin_pct >= 50:
        reasons.append(get_message("category_margin_high"))
    elif avg_margin_pct < 25:
        reasons.append(get_message("category_margin_low"))

    if revenue_share >= 20:
        reasons.append(get_message("category_revenue_share", share=revenue_share))

    if momentum_pct > 10:
        reasons.append(get_message("category_momentum_up"))
    elif momentum_pct < -10:
        reasons.append(get_message("category_momentum_down"))

    if overstock_ratio > 0.3:
        reasons.append(get_message("category_overstock"))

    return CATEGORY_REASON_SEPARATOR.join(reasons) or get_message("category_average")


def describe_recoverability(recoverability_pct: float, hero_count_gap: int, ok_pct: float) -> str:
    """Whether existing heroes can close the gap, or how many new heroes are needed."""
    if recoverability_pct >= ok_pct:
        return get_message("recoverability_ok", pct=recoverability_pct)
    return get_message("recoverability_gap", count=hero_count_gap)


def describe_gravity(
    category: Optional[str],
    size: Optional[str],
    band: Optional[str],
) -> tuple[str, str]:
    """
    Summarize where growth concentrates.

    Returns:
        (gravity_summary, shape_statement)
    """
    if category is None:
        return get_message("gravity_none"), get_message("shape_statement_none")

    summary = get_message(
        "gravity_summary",
        category=category,
        size=get_message("gravity_size", size=size) if size else "",
        band=get_message("gravity_band", band=band) if band else "",
    )
    return summary, get_message("shape_statement")
