"""Markdown rendering of search outcomes for chat/API consumers."""
from __future__ import annotations

from application.services.collection_router import collection_stats
from domain.entities import Availability, RoutingMode, SearchOutcome, SearchResult

MESSAGES: dict[str, str] = {
    "no_results": "ไม่พบวัตถุดิบที่ต้องการ",
    "no_results_in_stock": "ไม่พบวัตถุดิบที่ต้องการในสต็อกปัจจุบัน แต่สามารถค้นหาในฐานข้อมูล FDA ทั้งหมดได้",
    "unavailable": "ระบบค้นหาไม่พร้อมใช้งานชั่วคราว กรุณาลองใหม่อีกครั้ง",
    "ready_now": "มีในสต็อก พร้อมใช้",
    "orderable": "ไม่มีในสต็อก สั่งซื้อได้",
    "summary": "พบ {total} รายการ (มีในสต็อก {ready_now}, สั่งซื้อได้ {orderable})",
}


def _field(result: SearchResult, name: str) -> str | None:
    if result.record is not None:
        value = getattr(result.record, name, None)
        if value:
            return str(value)
    value = result.metadata.get(name)
    return str(value) if value else None


def format_result(rank: int, result: SearchResult) -> str:
    code = _field(result, "canonical_code") or result.record_id
    name = _field(result, "display_name") or "-"
    lines = [f"{rank}. **{code}** {name} (score {result.fused_score:.2f})"]
    alt_name = _field(result, "alt_name")
    if alt_name:
        lines.append(f"   - INCI: {alt_name}")
    supplier = _field(result, "supplier")
    if supplier:
        lines.append(f"   - Supplier: {supplier}")
    matches = ", ".join(f"{m.match_type.value} {m.raw_score:.2f}" for m in result.contributing_matches)
    lines.append(f"   - Matched by: {matches}")
    if result.availability is not None:
        key = "ready_now" if result.availability is Availability.READY_NOW else "orderable"
        lines.append(f"   - {MESSAGES[key]}")
    return "\n".join(lines)


def format_results(outcome: SearchOutcome) -> str:
    if outcome.unavailable:
        return MESSAGES["unavailable"]
    if not outcome.results:
        if outcome.routing is not None and outcome.routing.mode is RoutingMode.SINGLE_RESTRICTED:
            return MESSAGES["no_results_in_stock"]
        return MESSAGES["no_results"]
    header = MESSAGES["summary"].format(**collection_stats(outcome.results))
    body = "\n".join(format_result(rank, result) for rank, result in enumerate(outcome.results, start=1))
    return f"{header}\n\n{body}"


__all__ = ["MESSAGES", "format_result", "format_results"]
