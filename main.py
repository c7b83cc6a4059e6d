# boardcut ver1.0 - main entry
# - Board, kerf and margin come from config.properties (or a JSON job file)
# - Stock boards are optional and consumed before the default board
# - Clean error reporting (no traceback)

import argparse
import logging
import sys

from io_utils import (
    board_from_config, format_length, load_job, parse_bool, parse_pieces, parse_properties,
    parse_stock, save_job
)
from models import Job
from rotation import normalize_pieces
from packing import pack_max_rects, DEFAULT_MAX_PLACEMENTS, DEFAULT_MAX_WASTE_RECTS
from summary import compute_summary, format_area_m2, format_percent, plural
from pdf_export import generate_pdf


def load_inputs(args, cfg) -> Job:
    if args.job:
        return load_job(args.job)

    if not args.pieces_csv:
        raise ValueError("pieces.csv is required unless --job is given.")

    board = board_from_config(cfg)
    cuts = parse_pieces(args.pieces_csv, board.unit)
    stock = parse_stock(args.stock, board.unit) if args.stock else []
    rotation_default = parse_bool(cfg.get("rotation-default", "true"))
    return Job(board=board, cuts=cuts, stock=stock, global_rotation_default=rotation_default)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="boardcut - 2D cut layout optimizer")
    parser.add_argument("pieces_csv", nargs="?", help="pieces.csv input")
    parser.add_argument("config_properties", help="config.properties input")
    parser.add_argument("output_pdf", help="output PDF path")
    parser.add_argument("--stock", help="stock.csv with offcuts, in priority order")
    parser.add_argument("--job", help="JSON job file (replaces pieces.csv, stock and board config)")
    parser.add_argument("--export-job", help="write the inputs as a JSON job file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    # --- LOAD INPUT FILES ---
    try:
        cfg = parse_properties(args.config_properties)
        job = load_inputs(args, cfg)
        max_placements = int(cfg.get("max-placements", str(DEFAULT_MAX_PLACEMENTS)))
        max_waste = int(cfg.get("max-waste-rects", str(DEFAULT_MAX_WASTE_RECTS)))
    except (OSError, ValueError) as e:
        print(f"\n[ERROR] {str(e).strip()}\n")
        return 1

    if args.export_job:
        save_job(args.export_job, job)
        print(f"Job saved to {args.export_job}")

    # --- PACKING ---
    pieces = normalize_pieces(job.cuts, job.global_rotation_default)
    result = pack_max_rects(
        board=job.board,
        stock=job.stock,
        pieces=pieces,
        global_rotation_allowed=True,
        max_placements=max_placements,
        max_waste_rects_per_board=max_waste
    )
    summary = compute_summary(result)

    # --- REPORT ---
    unit = job.board.unit
    print(
        f"{summary.board_count} {plural(summary.board_count, 'board', 'boards')} "
        f"({summary.stock_board_count} from stock), "
        f"{summary.placed_count} {plural(summary.placed_count, 'placement', 'placements')}, "
        f"utilization {format_percent(summary.total_utilization)}, "
        f"waste {format_area_m2(summary.total_waste_area_mm2)}"
    )
    for (w, h), count in summary.boards_by_size.items():
        print(f"  {format_length(w, unit)} x {format_length(h, unit)} {unit}: {count}")

    if not summary.all_placed:
        reasons = ", ".join(f"{reason}: {qty}" for reason, qty in summary.unplaced_by_reason.items())
        print(f"\n[WARNING] {summary.unplaced_count} piece(s) not placed ({reasons}):")
        for u in result.unplaced:
            print(f"- {u.label or u.piece_id} x{u.quantity} [{u.reason}]: {u.message}")
    else:
        print("All pieces placed.")

    # --- PDF OUTPUT ---
    generate_pdf(
        output_path=args.output_pdf,
        result=result,
        summary=summary,
        cfg=cfg,
        unit=unit
    )

    print(f"Success! PDF saved to {args.output_pdf}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
