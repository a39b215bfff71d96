"""Connection expand/flatten around the strategy options mapper."""

from typing import Any, Dict

from identity_sync.data import (
    ResourceData,
    any_of,
    get_bool,
    get_string,
    get_string_list,
    get_string_map,
    has_change,
    is_new_resource,
)
from identity_sync.mappers.connection_options import (
    expand_connection_options,
    first_block,
    flatten_connection_options,
    parse_strategy,
)
from identity_sync.models import SHOW_AS_BUTTON_STRATEGIES, Connection


def expand_connection(d: ResourceData) -> Connection:
    """Build the connection payload from the desired tree.

    ``name`` and ``strategy`` are only sent on creation; changing either
    replaces the connection.

    Raises:
        ValidationConflict: If the strategy is unknown or an option is invalid
    """
    strategy = parse_strategy(d.get("strategy"), d)

    connection = Connection(
        name=get_string(d, "name", is_new_resource()),
        display_name=get_string(d, "display_name"),
        strategy=get_string(d, "strategy", is_new_resource()),
        is_domain_connection=get_bool(d, "is_domain_connection"),
        enabled_clients=get_string_list(d, "enabled_clients"),
        realms=get_string_list(d, "realms", any_of(is_new_resource(), has_change())),
        metadata=get_string_map(d, "metadata"),
    )

    if strategy in SHOW_AS_BUTTON_STRATEGIES:
        connection.show_as_button = get_bool(d, "show_as_button")

    options = first_block(d, "options")
    if options is not None:
        connection.options = expand_connection_options(options, strategy)

    return connection


def flatten_connection(d: ResourceData, connection: Connection) -> Dict[str, Any]:
    """Flatten a connection response into observed fields."""
    return {
        "name": connection.name,
        "display_name": connection.display_name,
        "strategy": connection.strategy,
        "is_domain_connection": connection.is_domain_connection,
        "show_as_button": connection.show_as_button,
        "enabled_clients": connection.enabled_clients,
        "realms": connection.realms,
        "metadata": connection.metadata,
        "options": flatten_connection_options(d.block("options"), connection.options),
    }
