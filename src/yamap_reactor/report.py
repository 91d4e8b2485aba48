"""Plain-text and JSON renderings of a finished crawl run."""

from __future__ import annotations

import json

from yamap_reactor.models import DispatchOutcome, RunResult


def format_run_summary(result: RunResult) -> str:
    lines = [
        f"Reacted to {result.success_count}/{result.target} item(s) "
        f"(stop reason: {result.stop_reason.value})",
        f"Processed: {len(result.processed_urls)}  "
        f"already reacted: {result.already_reacted_count}  failed: {result.failed_count}",
        f"Rounds: {result.rounds}  scrolls: {result.scroll_rounds}  "
        f"distinct ids seen: {result.seen_ids}",
    ]
    if result.reacted_urls:
        lines.append("Reacted URLs:")
        lines.extend(f"  {url}" for url in result.reacted_urls)
    failed = [outcome for outcome in result.outcomes if outcome.error is not None]
    if failed:
        lines.append("Failed URLs:")
        lines.extend(f"  {outcome.url}: {outcome.error_message}" for outcome in failed)
    lines.append(f"Elapsed: {_format_elapsed(result.elapsed_seconds)}")
    return "\n".join(lines)


def render_run_json(result: RunResult) -> str:
    return json.dumps(run_result_to_dict(result), indent=2, sort_keys=True)


def run_result_to_dict(result: RunResult) -> dict[str, object]:
    return {
        "success_count": result.success_count,
        "target": result.target,
        "stop_reason": result.stop_reason.value,
        "processed_urls": list(result.processed_urls),
        "reacted_urls": list(result.reacted_urls),
        "failed_count": result.failed_count,
        "already_reacted_count": result.already_reacted_count,
        "rounds": result.rounds,
        "scroll_rounds": result.scroll_rounds,
        "seen_ids": result.seen_ids,
        "elapsed_seconds": round(result.elapsed_seconds, 3),
        "outcomes": [dispatch_outcome_to_dict(outcome) for outcome in result.outcomes],
    }


def dispatch_outcome_to_dict(outcome: DispatchOutcome) -> dict[str, object]:
    return {
        "url": outcome.url,
        "status": outcome.status.value,
        "liked": outcome.liked,
        "attempts": outcome.attempts,
        "reloads": outcome.reloads,
        "error_type": type(outcome.error).__name__ if outcome.error is not None else None,
        "error": outcome.error_message,
    }


def _format_elapsed(seconds: float) -> str:
    total = max(0, int(round(seconds)))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"
