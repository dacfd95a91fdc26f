"""
Main entry point for tbclust.

Runs one stage of the walkthrough on a CSV table and prints the outcome
as text or JSON:

    tbclust pca tb.csv
    tbclust cluster tb.csv --k 4 --seed 1
    tbclust explore tb.csv --k-values 3,4,5,6
    tbclust refine tb.csv --k 3 --cluster-id 2 --refine-k 2
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from tbclust.analysis import explore_k, exploration_summary
from tbclust.components.config import Config, ConfigManager, load_config_file, to_int_list
from tbclust.data_loader import load_csv
from tbclust.errors import TbclustError
from tbclust.math.clusters import INIT_METHODS, EMPTY_CLUSTER_POLICIES, cluster_named_matrix
from tbclust.math.pca import PCA_METHODS, pca_project_named_matrix
from tbclust.math.refine import refine_cluster
from tbclust.report import (
    format_clusters, format_exploration, format_pca, pca_payload, to_json
)

logger = logging.getLogger(__name__)

LOG_LEVEL_ALIASES = {'warn': 'WARNING'}


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level name (case-insensitive, 'warn' accepted)
    """
    name = LOG_LEVEL_ALIASES.get(level.lower(), level.upper())
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    """
    Build the command line parser.

    Returns:
        Configured ArgumentParser
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('data', help='CSV file: label column followed by yearly observations')
    common.add_argument('--config', help='Path to configuration file (.yaml, .yml or .json)')
    common.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (defaults to the configured level)'
    )
    common.add_argument('--format', choices=['text', 'json'], default='text', help='Output format')

    kmeans_opts = argparse.ArgumentParser(add_help=False)
    kmeans_opts.add_argument('--seed', type=int, help='Seed for centroid initialization')
    kmeans_opts.add_argument('--max-iters', type=int, help='Iteration cap per run')
    kmeans_opts.add_argument('--n-init', type=int, help='Number of restarts')
    kmeans_opts.add_argument('--init', choices=INIT_METHODS, help='Initialization method')
    kmeans_opts.add_argument('--empty-cluster', choices=EMPTY_CLUSTER_POLICIES,
                             help='What to do when a cluster loses all members')

    parser = argparse.ArgumentParser(description='PCA and k-means exploration of yearly tables')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')
    subparsers.required = True

    pca_parser = subparsers.add_parser('pca', parents=[common], help='Principal component analysis')
    pca_parser.add_argument('--n-comps', type=int, help='Number of components to report')
    pca_parser.add_argument('--no-scale', action='store_true', help='Do not scale columns to unit variance')
    pca_parser.add_argument('--method', choices=PCA_METHODS, help='Decomposition method')

    cluster_parser = subparsers.add_parser('cluster', parents=[common, kmeans_opts],
                                           help='k-means clustering')
    cluster_parser.add_argument('--k', type=int, help='Number of clusters')

    explore_parser = subparsers.add_parser('explore', parents=[common, kmeans_opts],
                                           help='Compare clusterings for several k')
    explore_parser.add_argument('--k-values', help='Comma-separated cluster counts, e.g. 3,4,5,6')

    refine_parser = subparsers.add_parser('refine', parents=[common, kmeans_opts],
                                          help='Cluster, then re-cluster one cluster')
    refine_parser.add_argument('--k', type=int, help='Number of first-level clusters')
    refine_parser.add_argument('--cluster-id', type=int, required=True, help='Cluster to split')
    refine_parser.add_argument('--refine-k', type=int, help='Number of sub-clusters')
    refine_parser.add_argument('--refine-seed', type=int, help='Seed for the sub-clustering')

    return parser


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Turn a configuration file and command line flags into config overrides.

    Flags win over the file.
    """
    overrides: Dict[str, Any] = {}
    if args.config:
        overrides.update(load_config_file(args.config))

    def put(section: str, key: str, value: Any) -> None:
        if value is not None:
            overrides.setdefault(section, {})[key] = value

    if args.command == 'pca':
        put('pca', 'n-comps', args.n_comps)
        put('pca', 'method', args.method)
        if args.no_scale:
            put('pca', 'scale', False)
    else:
        put('kmeans', 'seed', args.seed)
        put('kmeans', 'max-iters', args.max_iters)
        put('kmeans', 'n-init', args.n_init)
        put('kmeans', 'init', args.init)
        put('kmeans', 'empty-cluster', args.empty_cluster)

    if args.command in ('cluster', 'refine'):
        put('kmeans', 'k', args.k)
    if args.command == 'explore' and args.k_values:
        put('explore', 'k-values', to_int_list(args.k_values))
    if args.command == 'refine':
        put('refine', 'k', args.refine_k)
        put('refine', 'seed', args.refine_seed)

    if args.log_level:
        put('logging', 'level', args.log_level)

    return overrides


def kmeans_options(config: Config) -> Dict[str, Any]:
    return {
        'max_iters': config.get('kmeans.max-iters'),
        'n_init': config.get('kmeans.n-init'),
        'init': config.get('kmeans.init'),
        'empty_cluster': config.get('kmeans.empty-cluster'),
    }


def run(args: argparse.Namespace, config: Config) -> str:
    """
    Execute the selected command.

    Returns:
        The rendered output
    """
    nmat = load_csv(
        args.data,
        label_column=config.get('loader.label-column'),
        thousands=config.get('loader.thousands'),
    )
    as_json = args.format == 'json'

    if args.command == 'pca':
        n_comps = config.get('pca.n-comps')
        pca_results, _ = pca_project_named_matrix(
            nmat, n_comps,
            scale=config.get('pca.scale'),
            method=config.get('pca.method'),
        )
        if as_json:
            return to_json(pca_payload(pca_results, n_scores=n_comps))
        return format_pca(pca_results, n_scores=n_comps)

    if args.command == 'cluster':
        result = cluster_named_matrix(
            nmat, config.get('kmeans.k'), seed=config.get('kmeans.seed'), **kmeans_options(config)
        )
        return to_json(result.to_dict()) if as_json else format_clusters(result)

    if args.command == 'explore':
        results = explore_k(
            nmat, config.get('explore.k-values'), seed=config.get('kmeans.seed'),
            **kmeans_options(config)
        )
        summary = exploration_summary(nmat, results)
        if as_json:
            return to_json({
                'summary': summary.to_dict(orient='index'),
                'results': {k: r.to_dict() for k, r in results.items()},
            })
        return format_exploration(summary, results)

    # refine
    first = cluster_named_matrix(
        nmat, config.get('kmeans.k'), seed=config.get('kmeans.seed'), **kmeans_options(config)
    )
    refined = refine_cluster(
        nmat, first, args.cluster_id, config.get('refine.k'),
        seed=config.get('refine.seed'), **kmeans_options(config)
    )
    if as_json:
        return to_json({'clustering': first.to_dict(), 'refined': refined.to_dict(),
                        'cluster_id': args.cluster_id})
    return "\n\n".join([
        format_clusters(first, title="First-level clustering"),
        format_clusters(refined, title=f"Refinement of cluster {args.cluster_id}"),
    ])


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        overrides = build_overrides(args)
        config = ConfigManager.get_config(overrides)
        setup_logging(config.get('logging.level', 'warn'))
        output = run(args, config)
    except (TbclustError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
