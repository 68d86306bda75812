"""
pokebridge Main Executor
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from pokebridge import constants
from pokebridge.utils import init_logger

LOGGER: logging.Logger = logging.getLogger(__name__)


def build_set_mapping(ctx: Any, args: argparse.Namespace) -> Any:
    """
    Build the set mapping artifact from dumps on disk, or from the APIs
    :param ctx: Bridge context
    :param args: Parsed arguments
    :return Artifact metadata
    """
    from pokebridge.set_mapping_builder import write_artifact

    builder = ctx.set_mapping_builder()
    if args.catalog_a_sets:
        artifact = builder.build_from_files(args.catalog_a_sets, args.catalog_b_sets)
    else:
        LOGGER.info("Downloading set catalogs")
        artifact = builder.build(ctx.catalog_a.list_sets(), ctx.catalog_b.list_sets())

    write_artifact(artifact, args.output or ctx.set_mapping_path, args.pretty)
    ctx.set_index.reload()
    return artifact.metadata.model_dump(by_alias=True, mode="json")


def dispatcher(args: argparse.Namespace) -> Any:
    """
    pokebridge Dispatcher
    :return JSON serializable result of the requested action
    """
    from pokebridge.bridge_config import BridgeConfig
    from pokebridge.context import BridgeContext

    ctx = BridgeContext.from_config(BridgeConfig(args.config))
    orchestrator = ctx.orchestrator

    if args.build_set_mapping:
        return build_set_mapping(ctx, args)
    if args.card:
        return orchestrator.get_card(
            args.card, force_refresh=args.force_refresh, set_id=args.set_id
        ).to_json()
    if args.set_cards:
        return orchestrator.list_cards_in_set(
            args.set_cards,
            page=args.page,
            page_size=args.page_size,
            force_refresh=args.force_refresh,
        ).to_json()
    if args.sets:
        return orchestrator.list_sets(force_refresh=args.force_refresh)
    if args.current_sets:
        return orchestrator.list_current_sets()
    if args.refresh_pricing:
        return {"refreshed": orchestrator.refresh_pricing_for_set(args.refresh_pricing)}
    if args.mapping_stats:
        return ctx.set_index.stats().model_dump(by_alias=True, mode="json")

    return [
        unmapped.model_dump(by_alias=True, mode="json", exclude_none=True)
        for unmapped in ctx.set_index.list_unmapped(args.unmapped)
    ]


def main(argv: Optional[List[str]] = None) -> int:
    """
    pokebridge safe main call
    :return Process exit code
    """
    from pokebridge.arg_parser import parse_args
    from pokebridge.errors import BridgeError

    init_logger()
    args = parse_args(argv)
    LOGGER.info(f"Starting pokebridge on {constants.BUILD_DATE}")

    try:
        result = dispatcher(args)
    except (BridgeError, ValueError) as error:
        LOGGER.fatal(f"Exception caught: {error}")
        return 1

    json.dump(result, sys.stdout, indent=(4 if args.pretty else None), ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
