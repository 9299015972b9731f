"""Command-line interface for Japanese receipt text processing."""

import sys
import json
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from tqdm import tqdm

from .cache import TTLCache
from .categories import CategoryNormalizer
from .classify import CategoryClassifier, resolve_category
from .config import AppConfig, load_config
from .export import ExcelExporter
from .item_categorizer import categorize_receipt
from .parse import JapaneseReceiptParser
from .parsers import parse_text_expense
from .prompting import ClassificationContext
from .review import ReviewQueue
from .rules import CategoryRules, get_default_rules, load_rules
from .services import StaticCategorySource, create_classification_service

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)
logger = logging.getLogger(__name__)


def _load_rules(config: AppConfig) -> CategoryRules:
    return load_rules(Path(config.rules_path)) if config.rules_path else get_default_rules()


def build_classifier(config: AppConfig) -> CategoryClassifier:
    """Wire the tiered classifier from configuration."""
    rules = _load_rules(config)
    source = StaticCategorySource(
        config.categories or rules.default_categories,
        config.custom_categories,
    )
    return CategoryClassifier(
        service=create_classification_service(config),
        category_source=source,
        rules=rules,
        result_cache=TTLCache(config.classifier.result_ttl_seconds),
        category_cache=TTLCache(config.classifier.category_ttl_seconds),
        timeout=config.classifier.timeout_seconds,
    )


def _echo_json(data: Dict[str, Any]):
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


class ReceiptBatchProcessor:
    """Analyze a folder of OCR text files."""

    def __init__(self, config: AppConfig, max_workers: int = 4):
        self.config = config
        self.max_workers = max_workers
        self.rules = _load_rules(config)
        self.parser = JapaneseReceiptParser(
            fallback_threshold=config.receipt.fallback_threshold,
            store_scan_lines=config.receipt.store_scan_lines,
        )
        self.review_queue = ReviewQueue(fallback_threshold=config.receipt.fallback_threshold)
        self.stats = {
            'total_files': 0,
            'processed': 0,
            'failed': 0,
        }

    def find_text_files(self, input_dir: Path) -> List[Path]:
        files = sorted(set(input_dir.glob('**/*.txt')))
        logger.info(f"Found {len(files)} OCR text files in {input_dir}")
        return files

    def process_single_file(self, text_path: Path) -> Dict[str, Any]:
        """Analyze one file and queue it for review if needed."""
        text = text_path.read_text(encoding='utf-8')
        analysis = self.parser.parse_receipt(text)
        category = categorize_receipt(analysis.receipt, self.rules)

        self.review_queue.add_from_analysis(
            file_path=str(text_path),
            raw_text=text,
            receipt=analysis.receipt,
            assessment=analysis.assessment,
            used_fallback=analysis.used_fallback,
            category=category,
        )

        return ExcelExporter.create_expense_record(
            file_path=str(text_path),
            store_name=analysis.receipt.store_name,
            total=analysis.receipt.total,
            category=category,
            date=analysis.receipt.date,
            confidence=analysis.assessment.confidence,
            item_count=len(analysis.receipt.items),
            used_fallback=analysis.used_fallback,
        )

    def process_batch(self, input_dir: Path) -> List[Dict[str, Any]]:
        text_files = self.find_text_files(input_dir)
        self.stats['total_files'] = len(text_files)

        if not text_files:
            logger.warning("No OCR text files found!")
            return []

        results = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_file = {
                executor.submit(self.process_single_file, text_file): text_file
                for text_file in text_files
            }

            with tqdm(total=len(text_files), desc="Analyzing receipts") as pbar:
                for future in as_completed(future_to_file):
                    text_file = future_to_file[future]
                    try:
                        results.append(future.result())
                        self.stats['processed'] += 1
                    except Exception as e:
                        logger.error(f"Failed to process {text_file}: {e}")
                        self.stats['failed'] += 1
                        self.review_queue.add_item(
                            file_path=str(text_file),
                            reason=f"Processing failed: {e}",
                        )

                    pbar.update(1)
                    pbar.set_postfix({
                        'processed': self.stats['processed'],
                        'failed': self.stats['failed'],
                    })

        results.sort(key=lambda record: record['file_name'])
        logger.info(f"Batch processing complete. Processed: {self.stats['processed']}, "
                    f"Failed: {self.stats['failed']}, Review items: {len(self.review_queue.items)}")
        return results


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug output')
def cli(debug: bool):
    """Japanese receipt OCR text - parse receipts and classify expenses."""
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.argument('text_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--config', 'config_path', type=click.Path(path_type=Path), help='YAML config file')
def parse(text_file: Path, config_path: Optional[Path]):
    """Analyze one OCR text file and print the receipt as JSON."""
    try:
        config = load_config(config_path)
        parser = JapaneseReceiptParser(
            fallback_threshold=config.receipt.fallback_threshold,
            store_scan_lines=config.receipt.store_scan_lines,
        )
        analysis = parser.parse_receipt(text_file.read_text(encoding='utf-8'))

        output = analysis.to_dict()
        output['category'] = categorize_receipt(analysis.receipt, _load_rules(config))
        _echo_json(output)

    except Exception as e:
        logger.error(f"Parsing failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--in', 'input_dir', required=True, type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Directory containing OCR text files')
@click.option('--out', 'output_path', required=True, type=click.Path(path_type=Path),
              help='Output Excel file')
@click.option('--config', 'config_path', type=click.Path(path_type=Path), help='YAML config file')
@click.option('--max-workers', default=4, type=int, help='Maximum number of parallel workers')
@click.option('--summary/--no-summary', default=True, help='Include category summary')
def batch(input_dir: Path, output_path: Path, config_path: Optional[Path], max_workers: int, summary: bool):
    """
    Analyze a folder of OCR text files and export an Excel workbook.

    Example:
        kakeibo batch --in ./ocr_text --out ./out/expenses.xlsx
    """
    try:
        config = load_config(config_path)
        processor = ReceiptBatchProcessor(config, max_workers=max_workers)
        results = processor.process_batch(input_dir)

        exporter = ExcelExporter(output_path)
        exporter.export(results, processor.review_queue.items, include_summary=summary)

        click.echo(f"Total files found: {processor.stats['total_files']}")
        click.echo(f"Successfully processed: {processor.stats['processed']}")
        click.echo(f"Failed: {processor.stats['failed']}")
        click.echo(f"Items needing review: {len(processor.review_queue.items)}")
        click.echo(f"Excel: {output_path}")

    except Exception as e:
        logger.error(f"Processing failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('description')
@click.option('--user', 'user_id', default='local', help='User whose categories are used')
@click.option('--store', 'store_name', default=None, help='Store name hint')
@click.option('--amount', type=int, default=None, help='Amount hint (JPY)')
@click.option('--min-confidence', type=float, default=None, help='Acceptance threshold')
@click.option('--config', 'config_path', type=click.Path(path_type=Path), help='YAML config file')
def classify(description: str, user_id: str, store_name: Optional[str], amount: Optional[int],
             min_confidence: Optional[float], config_path: Optional[Path]):
    """Classify an expense description into a category."""
    try:
        config = load_config(config_path)
        classifier = build_classifier(config)
        context = ClassificationContext(description=description, amount=amount, store_name=store_name)
        result = asyncio.run(_resolve(classifier, config, user_id, context, min_confidence))

        output = result.to_dict()
        output['stats'] = classifier.stats.snapshot()
        _echo_json(output)

    except Exception as e:
        logger.error(f"Classification failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


async def _resolve(classifier: CategoryClassifier, config: AppConfig, user_id: str,
                   context: ClassificationContext, min_confidence: Optional[float]):
    available = await classifier.get_category_names(user_id)
    return await resolve_category(
        classifier,
        user_id,
        context,
        available=available,
        min_confidence=config.classifier.min_confidence if min_confidence is None else min_confidence,
        default_category=config.default_category,
    )


@cli.command()
@click.argument('message')
@click.option('--user', 'user_id', default='local', help='User whose categories are used')
@click.option('--config', 'config_path', type=click.Path(path_type=Path), help='YAML config file')
def text(message: str, user_id: str, config_path: Optional[Path]):
    """Parse a chat expense message such as "500 ランチ" and classify it."""
    try:
        expense = parse_text_expense(message)
        if expense is None:
            click.echo("Error: no amount found in message", err=True)
            sys.exit(1)

        config = load_config(config_path)
        classifier = build_classifier(config)
        context = ClassificationContext(description=expense.description, amount=expense.amount)
        result = asyncio.run(_resolve(classifier, config, user_id, context, None))

        output = expense.to_dict()
        output['category'] = result.category
        output['category_confidence'] = result.confidence
        _echo_json(output)

    except Exception as e:
        logger.error(f"Text parsing failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('label')
@click.option('--allowed', default=None, help='Comma-separated allowed category names')
@click.option('--config', 'config_path', type=click.Path(path_type=Path), help='YAML config file')
def normalize(label: str, allowed: Optional[str], config_path: Optional[Path]):
    """Normalize a category label and suggest alternatives."""
    try:
        config = load_config(config_path)
        normalizer = CategoryNormalizer(_load_rules(config))
        allowed_names = [name.strip() for name in allowed.split(',') if name.strip()] if allowed else None

        _echo_json({
            'input': label,
            'category': normalizer.normalize(label, allowed_names),
            'suggestions': [
                {'name': name, 'score': score}
                for name, score in normalizer.suggest(label, allowed_names)
            ],
        })

    except Exception as e:
        logger.error(f"Normalization failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
