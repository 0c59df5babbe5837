"""
Trial Balance: JSON API.

Upload a trial balance and get back the audit, the Profit & Loss statement,
the Balance Sheet and the ratio analysis.
"""

from __future__ import annotations

import csv
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, Response, request
from openpyxl.utils.exceptions import InvalidFileException
from werkzeug.utils import secure_filename

from trial_balance import __version__
from trial_balance.config import PipelineConfig
from trial_balance.pipeline import TrialBalancePipeline
from trial_balance.readers import ALLOWED_EXTENSIONS, TableReader
from trial_balance.report_builder import ReportBuilder
from trial_balance.sample_data import generate_sample_table
from trial_balance.schema import IngestionError, LedgerRow, RatioInputs

# -------------------------------------------------------
# App Setup
# -------------------------------------------------------

app = Flask(__name__)

app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024
app.config["UPLOAD_FOLDER"] = Path("/tmp")

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Errors a reader raises for a file it cannot decode
READ_ERRORS = (ValueError, csv.Error, zipfile.BadZipFile, InvalidFileException)

MAX_SAMPLE_ROWS = 1000

# -------------------------------------------------------
# Pipeline Setup
# -------------------------------------------------------

pipeline = TrialBalancePipeline(
    config=PipelineConfig(
        log_level=logging.WARNING,
        strict_mode=False,
    )
)

# -------------------------------------------------------
# Helpers
# -------------------------------------------------------

def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def read_upload() -> Tuple[Optional[List[List[Any]]], Optional[Tuple[Dict[str, Any], int]]]:
    """Save the uploaded file, read it into a table and delete it.

    Returns ``(table, None)`` on success or ``(None, error_response)``.
    """
    if "file" not in request.files:
        return None, ({"success": False, "error": "No file uploaded"}, 400)

    file = request.files["file"]

    if file.filename == "":
        return None, ({"success": False, "error": "No file selected"}, 400)

    if not allowed_file(file.filename):
        return None, (
            {
                "success": False,
                "error": f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
            },
            400,
        )

    filename = secure_filename(file.filename)
    filepath = app.config["UPLOAD_FOLDER"] / filename
    file.save(filepath)

    try:
        return TableReader.read_file(filepath), None
    except READ_ERRORS as e:
        logger.warning("Could not read upload %s: %s", filename, e)
        return None, ({"success": False, "error": f"Could not read file: {e}"}, 400)
    finally:
        filepath.unlink(missing_ok=True)


def csv_response(table: List[List[Any]], filename: str) -> Response:
    return Response(
        ReportBuilder.table_to_csv(table),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# -------------------------------------------------------
# API
# -------------------------------------------------------

@app.route("/api/parse", methods=["POST"])
def api_parse():
    """Run the full pipeline on an uploaded trial balance."""
    table, error = read_upload()
    if error:
        return error

    output = pipeline.ingest_table(table)
    status = 200 if output.success else 422
    return output.to_dict(), status


@app.route("/api/reports", methods=["POST"])
def api_reports():
    """Rebuild statements and ratios from previously accepted rows."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not isinstance(payload.get("rows"), list):
        return {"success": False, "error": "Expected a JSON object with a 'rows' array"}, 400

    try:
        rows = [LedgerRow.from_dict(r) for r in payload["rows"]]
    except (ValueError, TypeError, AttributeError) as e:
        return {"success": False, "error": f"Malformed row: {e}"}, 400

    output = pipeline.derive(rows)
    status = 200 if output.success else 422
    return output.to_dict(), status


@app.route("/api/ratios", methods=["POST"])
def api_ratios():
    """Compute ratios, bands and the narrative from raw totals."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"success": False, "error": "Expected a JSON object of ratio inputs"}, 400

    try:
        inputs = RatioInputs.from_dict(payload)
    except (ValueError, TypeError) as e:
        return {"success": False, "error": str(e)}, 400

    ratios, details, assessment = pipeline.compute_ratios(inputs)
    return {
        "success": True,
        "ratio_inputs": inputs.to_dict(),
        "ratios": ratios.to_dict(),
        "ratio_details": details,
        "assessment": assessment.to_dict(),
    }, 200


@app.route("/api/cleanup", methods=["POST"])
def api_cleanup():
    """Map any 3-column upload onto Particulars / Debit / Credit."""
    table, error = read_upload()
    if error:
        return error

    try:
        reshaped = pipeline.reshape_three_column(table)
    except IngestionError as e:
        return {"success": False, "error": e.message}, 422

    if request.args.get("format") == "csv":
        return csv_response(reshaped, "formatted_trial_balance.csv")

    return {
        "success": True,
        "rows": reshaped,
        "message": f"Converted {len(reshaped) - 1} rows to the standard format.",
    }, 200


@app.route("/api/sample", methods=["GET"])
def api_sample():
    """Generate a sample trial balance for demos."""
    try:
        row_count = int(request.args.get("rows", 50))
        seed = request.args.get("seed")
        seed = int(seed) if seed is not None else None
    except ValueError:
        return {"success": False, "error": "'rows' and 'seed' must be integers"}, 400

    if not 0 <= row_count <= MAX_SAMPLE_ROWS:
        return {
            "success": False,
            "error": f"'rows' must be between 0 and {MAX_SAMPLE_ROWS}",
        }, 400

    categories = request.args.get("categories")
    try:
        table = generate_sample_table(
            row_count=row_count,
            categories=(
                [c.strip() for c in categories.split(",") if c.strip()]
                if categories is not None
                else None
            ),
            seed=seed,
        )
    except ValueError as e:
        return {"success": False, "error": str(e)}, 400

    if request.args.get("format") == "csv":
        return csv_response(table, "sample_trial_balance.csv")

    return {"success": True, "rows": table}, 200


@app.route("/api/health", methods=["GET"])
def api_health():
    return {
        "status": "online",
        "version": __version__,
        "keywords": pipeline.keyword_count,
        "endpoints": [
            "/api/parse",
            "/api/reports",
            "/api/ratios",
            "/api/cleanup",
            "/api/sample",
        ],
    }, 200


# -------------------------------------------------------
# Main
# -------------------------------------------------------

if __name__ == "__main__":
    print("=" * 60)
    print("Trial Balance API Running")
    print("http://localhost:5000")
    print("=" * 60)

    app.run(host="0.0.0.0", port=5000, debug=True)
