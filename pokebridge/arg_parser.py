"""
pokebridge Arg Parser to determine what actions to take
"""

import argparse
import logging
import pathlib

from . import constants
from ._version import __version__

LOGGER = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments from user to determine what
    pokebridge should do.
    :param argv: Arguments (default sys.argv)
    :return: Namespace of requests
    """
    parser = argparse.ArgumentParser("pokebridge")

    parser.add_argument(
        "--config",
        type=pathlib.Path,
        default=constants.CONFIG_PATH,
        help="Properties file to read configuration from.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--pretty",
        "-p",
        action="store_true",
        help="Pretty print JSON output.",
    )

    # What to do
    action_group = parser.add_mutually_exclusive_group(required=True)
    action_group.add_argument(
        "--build-set-mapping",
        action="store_true",
        help="Pair Pokemon TCG API sets with PokeData sets and write the mapping artifact.",
    )
    action_group.add_argument(
        "--card",
        metavar="CARD_ID",
        help='Look up one card ("sv8pt5-161" or "catalogB-73524").',
    )
    action_group.add_argument(
        "--set-cards",
        metavar="SET_ID",
        help="List one page of a set's cards (Pokemon TCG set id or PokeData numeric set id).",
    )
    action_group.add_argument(
        "--sets",
        action="store_true",
        help="List every Pokemon TCG API set.",
    )
    action_group.add_argument(
        "--current-sets",
        action="store_true",
        help="List sets released within the last year.",
    )
    action_group.add_argument(
        "--refresh-pricing",
        metavar="SET_ID",
        help="Refresh stale pricing for every stored card of a set.",
    )
    action_group.add_argument(
        "--mapping-stats",
        action="store_true",
        help="Show the set mapping artifact metadata.",
    )
    action_group.add_argument(
        "--unmapped",
        choices=["catalogA", "catalogB"],
        help="List the sets of one catalog the mapping could not pair.",
    )

    mapping_group = parser.add_argument_group("set mapping arguments")
    mapping_group.add_argument(
        "--catalog-a-sets",
        type=pathlib.Path,
        metavar="FILE",
        help="Pokemon TCG API /sets dump. Downloaded if omitted.",
    )
    mapping_group.add_argument(
        "--catalog-b-sets",
        type=pathlib.Path,
        metavar="FILE",
        help="PokeData /sets dump. Downloaded if omitted.",
    )
    mapping_group.add_argument(
        "--output",
        "-o",
        type=pathlib.Path,
        help="Where to write the artifact (default: configured artifact path).",
    )

    lookup_group = parser.add_argument_group("lookup arguments")
    lookup_group.add_argument(
        "--set-id",
        help="Set partition of --card, needed for PokeData cards.",
    )
    lookup_group.add_argument(
        "--page",
        type=int,
        default=1,
        help="Page of --set-cards to show (default 1).",
    )
    lookup_group.add_argument(
        "--page-size",
        type=int,
        help="Cards per page of --set-cards (default: the configured maximum).",
    )
    lookup_group.add_argument(
        "--force-refresh",
        "-f",
        action="store_true",
        help="Skip cached copies and refresh from the catalog APIs.",
    )

    args = parser.parse_args(argv)

    if args.build_set_mapping and bool(args.catalog_a_sets) != bool(args.catalog_b_sets):
        parser.error("--catalog-a-sets and --catalog-b-sets must be given together")

    return args
