"""Quick benchmark of CareCompare estimates and exports over the bundled samples."""

from __future__ import annotations

import json
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLES_DIR = REPO_ROOT / "data" / "samples"
REPORTS_DIR = REPO_ROOT / "reports"

sys.path.insert(0, str(REPO_ROOT))

from carecompare.config import COINSURANCE_MODES  # noqa: E402
from carecompare.estimator import compare_plans, estimate_detailed  # noqa: E402
from carecompare.exporter import build_breakdown_docx, build_breakdown_pdf  # noqa: E402


def load_samples() -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
	with open(SAMPLES_DIR / "people.json", "r", encoding="utf-8") as handle:
		people = json.load(handle)
	with open(SAMPLES_DIR / "plans.json", "r", encoding="utf-8") as handle:
		plans = json.load(handle)
	return people, plans


def benchmark() -> dict[str, Any]:
	people, plans = load_samples()
	rows: list[dict[str, Any]] = []

	for plan in plans:
		for mode in COINSURANCE_MODES:
			start = time.perf_counter()
			breakdown = estimate_detailed(plan, people, coinsurance_mode=mode)
			latency_ms = (time.perf_counter() - start) * 1000

			docx_bytes = build_breakdown_docx(breakdown)
			pdf_bytes = build_breakdown_pdf(breakdown)

			rows.append(
				{
					"plan": breakdown.plan_name,
					"coinsurance_mode": mode,
					"latency_ms": round(latency_ms, 2),
					"grand_total": round(breakdown.grand_total, 2),
					"final_family_oop": round(breakdown.oop_breakdown.final_family_oop, 2),
					"moop_hits": len(breakdown.oop_breakdown.individual_moop_hits),
					"docx_size_bytes": len(docx_bytes),
					"pdf_size_bytes": len(pdf_bytes),
				}
			)

	compare_start = time.perf_counter()
	ranking = compare_plans(plans, people, scenarios=True)
	compare_ms = (time.perf_counter() - compare_start) * 1000

	aggregate = {
		"estimates": len(rows),
		"avg_latency_ms": round(sum(row["latency_ms"] for row in rows) / len(rows), 2) if rows else 0.0,
		"compare_ms": round(compare_ms, 2),
		"cheapest_plan": ranking[0]["planName"] if ranking else None,
		"avg_docx_size_bytes": round(sum(row["docx_size_bytes"] for row in rows) / len(rows), 2) if rows else 0.0,
		"avg_pdf_size_bytes": round(sum(row["pdf_size_bytes"] for row in rows) / len(rows), 2) if rows else 0.0,
	}

	return {"rows": rows, "ranking": ranking, "aggregate": aggregate}


def main() -> None:
	REPORTS_DIR.mkdir(parents=True, exist_ok=True)
	results = benchmark()
	payload = {
		"generated_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
		"results": results,
	}
	output_path = REPORTS_DIR / "bench.json"
	with open(output_path, "w", encoding="utf-8") as handle:
		json.dump(payload, handle, indent=2)
	print(f"Benchmark results written to {output_path}")


if __name__ == "__main__":
	main()
