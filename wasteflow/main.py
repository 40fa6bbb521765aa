import argparse
import json
from pathlib import Path

from wasteflow.batches.upload_service import UploadService
from wasteflow.classification.classifier import WasteClassifier
from wasteflow.classification.detection import is_waste
from wasteflow.classification.models import Source
from wasteflow.classification.reference_data import parse_source, reload_reference_tables
from wasteflow.config.settings import Settings
from wasteflow.database.connection import close_pool, init_pool
from wasteflow.database.repositories.batch_repository import BatchRepository
from wasteflow.database.repositories.job_repository import JobRepository
from wasteflow.logging.logger import Log
from wasteflow.processor.processor import build_processor
from wasteflow.storage.factory import ObjectStoreFactory
from wasteflow.worker.pool import build_pool


def run_worker(settings: Settings) -> None:
    """Initialize pool -> load reference tables -> run the worker pool."""
    init_pool(settings)
    try:
        reload_reference_tables(settings.correspondence_table_path)
        processor = build_processor(settings)
        build_pool(settings, processor).run()
    finally:
        close_pool()


def run_upload(settings: Settings, path: Path) -> None:
    init_pool(settings)
    try:
        service = UploadService(
            BatchRepository(),
            JobRepository(settings.max_job_attempts),
            ObjectStoreFactory.create(settings),
            settings,
        )
        ticket = service.upload(path.name, path.read_bytes())
        print(json.dumps({"batch_id": ticket.batch_id, "source_file_ref": ticket.source_file_ref}))
    finally:
        close_pool()


def run_classify(settings: Settings, label: str, source: Source | None) -> None:
    tables = reload_reference_tables(settings.correspondence_table_path)
    result = WasteClassifier(tables).suggest(label, source)
    payload = {
        "label": label,
        "is_waste": is_waste(label, tables.waste_map),
        "suggestion": None,
    }
    if result is not None:
        payload["suggestion"] = {
            "code": result.display_code(),
            "hazardous": result.hazardous,
            "category": result.category.value,
            "confidence_tier": result.confidence_tier.value,
            "label": result.label,
        }
    print(json.dumps(payload, ensure_ascii=False))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wasteflow", description="Construction-site waste ingestion")
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("worker", help="Run the ingestion worker pool (default)")
    upload = commands.add_parser("upload", help="Upload a source file and enqueue its batch")
    upload.add_argument("path", type=Path)
    classify = commands.add_parser("classify", help="Suggest a waste code for a label")
    classify.add_argument("label")
    classify.add_argument("--source", choices=[source.value for source in Source])
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point: settings -> logging -> subcommand."""
    args = _build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    if args.command == "upload":
        run_upload(settings, args.path)
    elif args.command == "classify":
        run_classify(settings, args.label, parse_source(args.source) if args.source else None)
    else:
        run_worker(settings)


if __name__ == "__main__":
    main()
