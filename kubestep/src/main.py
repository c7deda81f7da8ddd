"""
kubestep - run a pipeline on Kubernetes.
"""

import argparse
import logging
import sys
from typing import List, Optional

from kubernetes.client.rest import ApiException

from kubestep.src.config import get_settings
from kubestep.src.errors import EngineError
from kubestep.src.models import load_pipeline
from kubestep.src.services import KubernetesEngine, run_pipeline

logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kubestep", description=__doc__.strip())
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a pipeline file")
    run.add_argument("pipeline", help="Pipeline configuration (YAML or JSON)")
    run.add_argument("--namespace", help="Kubernetes namespace")
    run.add_argument("--storage-class", help="Storage class of the shared volume")
    run.add_argument("--timeout", type=float, help="Seconds to wait for each step")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.namespace:
        overrides["k8s_namespace"] = args.namespace
    if args.storage_class:
        overrides["storage_class"] = args.storage_class
    if args.timeout is not None:
        overrides["wait_timeout"] = args.timeout
    settings = get_settings().model_copy(update=overrides)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    logger.info("Starting kubestep")
    logger.info(f"Kubernetes namespace: {settings.k8s_namespace}")

    try:
        config = load_pipeline(args.pipeline)
        engine = KubernetesEngine.from_settings(settings)
        engine.kube.ensure_namespace()
    except (EngineError, ApiException) as e:
        logger.error(f"Failed to initialize engine: {e}")
        return 1

    try:
        result = run_pipeline(engine, config)
    except Exception as e:
        logger.exception(f"Pipeline failed: {e}")
        return 1

    return 0 if result.succeeded else 1

if __name__ == "__main__":
    sys.exit(main())
