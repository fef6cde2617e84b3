"""Build orchestrator coordinating graph loading, extraction and writing."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .bench import Bench
from .config import BuildConfig
from .extractor import SemanticExtractor
from .highlight import Highlighter, HoverRenderer
from .models import Document, DocumentAnnotations, ReferenceResult
from .paths import PathMapper
from .site import SiteWriter
from .storage import IndexedGraph
from .tree import build_tree
from .validation_engine import ValidationEngine

logger = logging.getLogger(__name__)

R = TypeVar("R")


def run_batch(fn: Callable[..., R], jobs: Iterable[Tuple], max_workers: int) -> List[R]:
    """Run ``fn(*job)`` for every job on a bounded pool and wait for all.

    Results keep job order.  The first failure cancels the jobs that have
    not started yet and is re-raised once the running ones have finished.
    """
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(fn, *job) for job in jobs]
        try:
            for future in as_completed(futures):
                future.result()
        except BaseException:
            for future in futures:
                future.cancel()
            raise
        return [future.result() for future in futures]


@dataclass
class BuildResult:
    output: Path
    documents: int
    skipped: int
    annotated_ranges: int
    reference_files: int
    checked: Optional[int] = None


class SiteBuilder:
    """Runs one build from an LSIF dump to a static site."""

    def __init__(self, config: BuildConfig, bench: Optional[Bench] = None) -> None:
        self.config = config
        self.bench = bench or Bench(enabled=config.bench)

    def _site_documents(self, graph: IndexedGraph, mapper: PathMapper) -> Tuple[List[Tuple[Document, str]], int]:
        selected: List[Tuple[Document, str]] = []
        seen = set()
        skipped = 0
        for document in graph.documents:
            relative = mapper.relative_path(document.uri)
            if relative is None:
                logger.debug("Skipping %s: outside the project root", document.uri)
                skipped += 1
                continue
            if relative in seen:
                logger.warning("Skipping %s: %s is already generated", document.uri, relative)
                skipped += 1
                continue
            seen.add(relative)
            selected.append((document, relative))
        return selected, skipped

    @staticmethod
    def _collect_reference_ids(annotations: Sequence[DocumentAnnotations]) -> List[str]:
        ids: List[str] = []
        seen = set()
        for doc in annotations:
            for reference_id in doc.reference_ids:
                if reference_id not in seen:
                    seen.add(reference_id)
                    ids.append(reference_id)
        return ids

    def run(self) -> BuildResult:
        config = self.config
        stage = self.bench.stage

        with stage("Reading LSIF dump"):
            graph = IndexedGraph.load(config.input)
            mapper = PathMapper(graph.project_root, config.uri_map)
            documents, skipped = self._site_documents(graph, mapper)
            tree = build_tree(sorted(relative for _, relative in documents))

        writer = SiteWriter(config.output, tree, highlighter=Highlighter(style=config.style))
        extractor = SemanticExtractor(graph, mapper, HoverRenderer())

        with stage("Preparing output folder"):
            writer.prepare(config.dist)

        with stage("Resolving documents"):
            annotations = run_batch(extractor.extract, documents, config.workers)

        reference_ids = self._collect_reference_ids(annotations)

        with stage("Rendering pages"):
            run_batch(writer.write_document, [(a,) for a in annotations], config.workers)

        def write_reference(reference_id: str) -> None:
            result = graph.expect(reference_id, ReferenceResult)
            reference_set = extractor.reference_set(result)
            if reference_set is not None:
                writer.write_reference_set(reference_id, reference_set)

        with stage("Writing reference data"):
            run_batch(write_reference, [(rid,) for rid in reference_ids], config.workers)

        result = BuildResult(
            output=config.output,
            documents=len(annotations),
            skipped=skipped,
            annotated_ranges=sum(len(a.hovers) for a in annotations),
            reference_files=len(reference_ids),
        )

        if config.check:
            with stage("Validating HTML"):
                result.checked = ValidationEngine().validate_site(config.output)

        logger.info(
            "Built %d documents (%d skipped) into %s", result.documents, result.skipped, result.output
        )
        return result
