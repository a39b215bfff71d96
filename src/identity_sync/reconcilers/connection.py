"""Connection reconciler."""

from identity_sync.data import ResourceData
from identity_sync.mappers import expand_connection, flatten_connection
from identity_sync.utils.errors import NotFoundError
from identity_sync.utils.logging import get_logger

from .base import BaseReconciler

logger = get_logger(__name__)


class ConnectionReconciler(BaseReconciler):
    """Reconciler for connections.

    The strategy and name are fixed at creation; changing either replaces
    the connection.
    """

    resource_type = "connection"
    replace_fields = ("strategy", "name")

    def _create(self, d: ResourceData) -> None:
        connection = expand_connection(d)
        created = self._call(d, 'create', self.api.connection.create, connection)
        d.set_id(created.id)

    def _read(self, d: ResourceData) -> None:
        connection = self._read_or_clear(d, self.api.connection.read, d.id)
        if connection is None:
            return
        d.set_fields(flatten_connection(d, connection))

    def _update(self, d: ResourceData) -> None:
        connection = expand_connection(d)
        if connection.is_empty():
            logger.debug(f"No changes to send for connection {d.id}")
            return
        self._call(d, 'update', self.api.connection.update, d.id, connection)

    def _delete(self, d: ResourceData) -> None:
        try:
            self._call(d, 'delete', self.api.connection.delete, d.id)
        except NotFoundError:
            logger.debug(f"Connection {d.id} already deleted")
