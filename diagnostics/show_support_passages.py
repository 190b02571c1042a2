#!/usr/bin/env python3
"""
Prints the top support passages of a run for inspection, together with the
entity's pseudo-document size and its relevance-model expansion.
"""

import argparse
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from entity_support.core.corpus import BM25Corpus
from entity_support.core.entities import canonicalize, query_text, split_composite_id
from entity_support.core.pseudo_document import PseudoDocumentBuilder
from entity_support.core.rm_expansion import RelevanceModelExpander, expansion_statistics
from entity_support.utils.file_utils import load_trec_run


def show_support_passages(run_file: str, corpus_file: str, candidate_run_file: str = None,
                          max_pairs: int = 5, top_k: int = 3):
    """Print the top ``top_k`` passages of the first ``max_pairs`` (query, entity) pairs."""

    print("SUPPORT PASSAGE INSPECTION")
    print("=" * 60)

    run = load_trec_run(run_file)
    corpus = BM25Corpus.from_jsonl(corpus_file)
    candidates = load_trec_run(candidate_run_file) if candidate_run_file else {}

    builder = PseudoDocumentBuilder(corpus)
    expander = RelevanceModelExpander(corpus.analyzer, take_k_terms=10)

    for composite_id in list(run)[:max_pairs]:
        query_id, entity_id = split_composite_id(composite_id)
        print(f"\nQuery:  {query_text(query_id)}  ({query_id})")
        print(f"Entity: {entity_id}  (canonical: {canonicalize(entity_id)})")

        if query_id in candidates:
            pdoc = builder.build(entity_id, list(candidates[query_id]))
            if pdoc is None:
                print("  No candidate passage mentions this entity")
            else:
                terms = expander.expand_from_passages(corpus, pdoc.passages, query_text(query_id))
                stats = expansion_statistics(terms)
                print(f"  Pseudo-document: {len(pdoc)} passages, {len(pdoc.mentions)} mentions")
                print(f"  RM terms: {', '.join(f'{t}:{w:.3f}' for t, w in terms)}")
                if stats:
                    print(f"  Mean weight {stats['mean_weight']:.4f}, max {stats['max_weight']:.4f}")

        ranked = sorted(run[composite_id].items(), key=lambda item: -item[1])[:top_k]
        for rank, (passage_id, score) in enumerate(ranked, 1):
            passage = corpus.lookup(passage_id)
            text = passage.text if passage else "<not in corpus>"
            print(f"  {rank}. {passage_id} ({score:.4f})")
            print(f"     {text[:300]}")

    corpus.close()


def main():
    parser = argparse.ArgumentParser(description="Show top support passages of a run.")
    parser.add_argument('--run', required=True, help='Support-passage run file.')
    parser.add_argument('--corpus-jsonl', required=True, help='JSONL passage corpus.')
    parser.add_argument('--passage-run', default=None, help='Candidate passage run (for pseudo-documents).')
    parser.add_argument('--max-pairs', type=int, default=5)
    parser.add_argument('--top-k', type=int, default=3)
    args = parser.parse_args()

    show_support_passages(args.run, args.corpus_jsonl, args.passage_run, args.max_pairs, args.top_k)


if __name__ == "__main__":
    main()
