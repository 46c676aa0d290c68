"""
Main Pipeline Orchestrator

Coordinates loading, key discovery, join statistics, join execution,
verification and export.

Usage:
    # Suggest join keys for every file in the data directory
    datalink --mode analyze

    # Estimate row counts, then run a join on the top candidate
    datalink --mode stats customers.xlsx orders.csv
    datalink --mode join customers.xlsx orders.csv --join-type ADDITIVE

    # AI semantic merge (draft the plan, edit it, run it)
    datalink --mode plan customers.xlsx orders.csv --output plan.txt
    datalink --mode semantic customers.xlsx orders.csv --instructions plan.txt

    # Ask questions about a dataset
    datalink --mode chat --workspace data/workspace.json --dataset orders.csv --message "Top customers?"
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from datalink.config import get_config
from datalink.discovery import KeySuggester
from datalink.engine import JoinExecutor, JoinResult, JoinStatsCalculator
from datalink.export import (
    create_joined_dataset,
    default_workspace_name,
    export_records,
    export_workspace,
    import_workspace,
    output_name,
)
from datalink.export.writer import JOINED_SUFFIX
from datalink.ingest import DatasetLoader
from datalink.llm import (
    CandidateDiscoveryError,
    LLMSettings,
    ReasoningService,
    SemanticMergeError,
)
from datalink.models import Dataset, JoinCandidate, JoinStats, JoinType
from datalink.utils.logging_utils import get_logger, log_banner, set_level, setup_logger
from datalink.verifiers import JoinChecker

logger = get_logger(__name__)

MODES = ['analyze', 'stats', 'join', 'plan', 'semantic', 'chat', 'export-workspace']


class Pipeline:
    """
    Main pipeline orchestrator.

    Example:
        >>> pipeline = Pipeline()
        >>> datasets = pipeline.load(["customers.xlsx", "orders.csv"])
        >>> candidate = pipeline.discover(datasets)[0]
        >>> result, report = pipeline.join(datasets, candidate, JoinType.ADDITIVE)
    """

    def __init__(self, config_file: Optional[str] = None, service: Optional[ReasoningService] = None):
        """
        Initialize the pipeline.

        Args:
            config_file: Path to config file (optional)
            service: Reasoning service to use instead of one built from config
        """
        self.config = get_config(config_file)

        log_config = self.config.get_stage_config('logging')
        file_config = log_config.get('file', {})
        setup_logger(
            'datalink',
            log_file=file_config.get('path') if file_config.get('enabled') else None,
            level=log_config.get('level', 'INFO')
        )
        set_level(log_config.get('level', 'INFO'))

        engine_config = self.config.get_stage_config('engine')
        self.max_combinations = engine_config.get('max_combinations_per_key')

        self._service = service

        log_banner(logger, "datalink Pipeline Initialized")

    @property
    def service(self) -> ReasoningService:
        if self._service is None:
            self._service = ReasoningService(LLMSettings.from_config(self.config.get_stage_config('llm')))
        return self._service

    def load(self, files: Optional[List[str]] = None) -> List[Dataset]:
        """Load the given files, or every table in the configured raw directory."""
        loader = DatasetLoader()
        if files:
            datasets = loader.load_all(files)
        else:
            datasets = loader.load_directory(self.config.get('data.raw_dir', 'data/raw'))

        logger.info(f"✓ Loaded {len(datasets)} datasets")
        return datasets

    def discover(self, datasets: List[Dataset], use_llm: Optional[bool] = None) -> List[JoinCandidate]:
        """
        Find join key candidates.

        Uses the reasoning service when enabled, falling back to the
        rule-based suggester if it fails or returns nothing.
        """
        discovery_config = self.config.get_stage_config('discovery')
        if use_llm is None:
            use_llm = discovery_config.get('use_llm', True)

        candidates: List[JoinCandidate] = []
        if use_llm:
            try:
                candidates = asyncio.run(self.service.propose_candidates(datasets))
            except CandidateDiscoveryError as e:
                logger.warning(f"Reasoning service discovery failed ({e}) - using rule-based suggester")

        if not candidates:
            candidates = KeySuggester(config=discovery_config).suggest(datasets)

        logger.info(f"✓ Discovery complete: {len(candidates)} candidates")
        return candidates

    def stats(self, datasets: List[Dataset], candidate: JoinCandidate) -> JoinStats:
        """Estimated row counts per join type."""
        stats = JoinStatsCalculator(self.max_combinations).calculate(datasets, candidate)
        logger.info(f"✓ Join stats for '{candidate.key_name}': {stats.as_dict()}")
        return stats

    def join(
        self,
        datasets: List[Dataset],
        candidate: JoinCandidate,
        join_type: JoinType
    ) -> Tuple[JoinResult, Dict[str, Any]]:
        """Run a join and verify it against the estimate."""
        stats = self.stats(datasets, candidate)
        result = JoinExecutor(self.max_combinations).run(datasets, candidate, join_type)

        checker = JoinChecker(config=self.config.get_verification_config('join_check'))
        report = checker.verify(datasets, candidate, result, stats)

        logger.info(f"✓ Join complete: {len(result.records)} rows, status = {report['status']}")
        return result, report

    def plan(self, datasets: List[Dataset], candidate: JoinCandidate) -> str:
        """Draft an editable semantic merge plan."""
        return asyncio.run(self.service.draft_merge_plan(datasets, candidate))

    def semantic(
        self,
        datasets: List[Dataset],
        candidate: JoinCandidate,
        instructions: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Run an AI semantic merge."""
        records = asyncio.run(self.service.semantic_merge(datasets, candidate, instructions))
        logger.info(f"✓ Semantic merge complete: {len(records)} rows")
        return records

    def chat(self, dataset: Dataset, message: str) -> Dataset:
        """Ask a question about one dataset; returns it with the exchange recorded."""
        return asyncio.run(self.service.converse(dataset, message))

    def save(
        self,
        records: List[Dict[str, Any]],
        join_type: JoinType,
        candidate: JoinCandidate,
        output: Optional[str] = None
    ) -> Tuple[Path, Dataset]:
        """Write records to disk and wrap them as a joined Dataset."""
        base = output_name(join_type, candidate.key_name)
        path = Path(output) if output else Path(self.config.get('data.outputs_dir', 'data/outputs')) / f"{base}.csv"

        export_records(records, path)
        joined = create_joined_dataset(records, f"{base}{JOINED_SUFFIX}")

        logger.info(f"✓ Output saved to: {path}")
        return path, joined


def _select_candidate(candidates: List[JoinCandidate], index: int) -> JoinCandidate:
    if not candidates:
        print("Error: no join key candidates found")
        sys.exit(1)
    if not 0 <= index < len(candidates):
        print(f"Error: --key-index must be between 0 and {len(candidates) - 1}")
        sys.exit(1)
    return candidates[index]


def _print_candidates(candidates: List[JoinCandidate]) -> None:
    print("\n" + "=" * 80)
    print("JOIN KEY CANDIDATES")
    print("=" * 80)

    for i, candidate in enumerate(candidates):
        print(f"\n[{i}] {candidate.key_name} (confidence {candidate.confidence:.0f})")
        for mapping in candidate.column_mappings:
            print(f"    {mapping.file_name}: {mapping.column_name}")
        if candidate.reasoning:
            print(f"    {candidate.reasoning}")
        for issue in candidate.issues:
            print(f"    ! {issue}")


def _read_instructions(value: Optional[str]) -> Optional[str]:
    if value and Path(value).is_file():
        return Path(value).read_text(encoding='utf-8')
    return value


def main():
    """
    CLI entry point for datalink.

    Usage:
        datalink --mode analyze [FILES...]
        datalink --mode stats [FILES...] [--key-index N]
        datalink --mode join [FILES...] --join-type OUTER [--output out.xlsx]
        datalink --mode plan [FILES...]
        datalink --mode semantic [FILES...] --instructions plan.txt
        datalink --mode chat --dataset NAME --message "..."
        datalink --mode export-workspace [FILES...] [--output workspace.json]
    """
    parser = argparse.ArgumentParser(
        description="Multi-file join key discovery and joins for spreadsheets",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        'files',
        nargs='*',
        help='Files to load, in join order (default: every file in data.raw_dir)'
    )

    parser.add_argument(
        '--mode',
        choices=MODES,
        default='analyze',
        help='Pipeline mode (default: analyze)'
    )

    parser.add_argument(
        '--join-type',
        choices=[jt.value for jt in JoinType if jt != JoinType.AI_SEMANTIC],
        help='Join type for --mode join (default: engine.default_join_type)'
    )

    parser.add_argument(
        '--key-index',
        type=int,
        default=0,
        help='Which suggested candidate to join on (default: 0, the best)'
    )

    parser.add_argument(
        '--no-llm',
        action='store_true',
        help='Use the rule-based key suggester only'
    )

    parser.add_argument(
        '--workspace',
        help='Load datasets from a workspace JSON file instead of FILES'
    )

    parser.add_argument(
        '--dataset',
        help='Dataset name for --mode chat (default: first dataset)'
    )

    parser.add_argument(
        '--message',
        help='Question for --mode chat'
    )

    parser.add_argument(
        '--instructions',
        help='Merge plan text, or a file containing it, for --mode semantic'
    )

    parser.add_argument(
        '--output',
        help='Output file (.csv/.xlsx for joins, .txt for plans, .json for workspaces)'
    )

    parser.add_argument(
        '--config',
        help='Path to config file (default: config/pipeline_config.yaml)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    pipeline = Pipeline(config_file=args.config)

    if args.verbose:
        set_level('DEBUG')

    if args.workspace:
        datasets = import_workspace(args.workspace)
        if args.files:
            datasets.extend(pipeline.load(args.files))
    else:
        datasets = pipeline.load(args.files)

    if not datasets:
        print("Error: no datasets loaded")
        sys.exit(1)

    if args.mode == 'export-workspace':
        output = args.output or Path(pipeline.config.get('data.outputs_dir', 'data/outputs')) / default_workspace_name()
        export_workspace(datasets, output)
        print(f"Workspace saved to: {output}")
        return

    if args.mode == 'chat':
        if not args.message:
            print("Error: --message required for chat")
            sys.exit(1)

        name = args.dataset or datasets[0].name
        idx = next((i for i, ds in enumerate(datasets) if ds.name == name), None)
        if idx is None:
            print(f"Error: Dataset {name} not found")
            sys.exit(1)

        datasets[idx] = pipeline.chat(datasets[idx], args.message)
        print(datasets[idx].ai_context.chat_history[-1].text)

        if args.workspace:
            export_workspace(datasets, args.workspace)
        return

    if len(datasets) < 2:
        print("Error: at least two datasets are required to join")
        sys.exit(1)

    candidates = pipeline.discover(datasets, use_llm=False if args.no_llm else None)

    if args.mode == 'analyze':
        _print_candidates(candidates)
        return

    candidate = _select_candidate(candidates, args.key_index)

    if args.mode == 'stats':
        stats = pipeline.stats(datasets, candidate)
        print(f"\nEstimated rows for '{candidate.key_name}':")
        for join_type, rows in stats.as_dict().items():
            print(f"  {join_type:<10} {rows}")

    elif args.mode == 'join':
        join_type = JoinType(args.join_type or pipeline.config.get('engine.default_join_type', 'ADDITIVE'))
        if join_type == JoinType.AI_SEMANTIC:
            print("Error: use --mode semantic for AI semantic merges")
            sys.exit(1)

        result, report = pipeline.join(datasets, candidate, join_type)
        path, _ = pipeline.save(result.records, join_type, candidate, args.output)

        print(f"\n{join_type.value} join on '{candidate.key_name}': {len(result.records)} rows -> {path}")
        print(f"Verification: {report['status']}")
        for warning in report['warnings']:
            print(f"  ! {warning['message']}")
        for error in report['errors']:
            print(f"  x {error['message']}")

    elif args.mode == 'plan':
        plan = pipeline.plan(datasets, candidate)
        if args.output:
            Path(args.output).write_text(plan, encoding='utf-8')
            print(f"Plan saved to: {args.output}")
        else:
            print(plan)

    elif args.mode == 'semantic':
        try:
            records = pipeline.semantic(datasets, candidate, _read_instructions(args.instructions))
        except SemanticMergeError as e:
            print(f"Error: {e}")
            sys.exit(1)

        if not records:
            print("Semantic merge returned no rows")
            sys.exit(1)

        path, _ = pipeline.save(records, JoinType.AI_SEMANTIC, candidate, args.output)
        print(f"\nAI semantic merge on '{candidate.key_name}': {len(records)} rows -> {path}")


if __name__ == '__main__':
    main()
