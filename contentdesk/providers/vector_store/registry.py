"""Resolution of :class:`VectorTarget` values to concrete vector repositories.

Ingestion and deletion never select a table by a caller-supplied string.
They ask the registry for the repository bound to a known target, and the
registry refuses targets that were not configured at startup.
"""

from __future__ import annotations

from collections.abc import Iterable

from contentdesk.interfaces.vector_store_provider import IVectorStoreProvider
from contentdesk.models.ingestion import VectorTarget
from contentdesk.utils.errors import ConfigurationError


class VectorStoreRegistry:
    """Maps each configured :class:`VectorTarget` to its repository."""

    def __init__(self, stores: Iterable[IVectorStoreProvider] = ()) -> None:
        self._stores: dict[VectorTarget, IVectorStoreProvider] = {}
        for store in stores:
            self.register(store)

    def register(self, store: IVectorStoreProvider) -> None:
        target = store.get_target()
        if target in self._stores:
            raise ConfigurationError(f"Vector target {target.value!r} registered twice")
        self._stores[target] = store

    def supports(self, target: VectorTarget) -> bool:
        return target in self._stores

    def targets(self) -> list[VectorTarget]:
        return list(self._stores)

    def resolve(self, target: VectorTarget | str) -> IVectorStoreProvider:
        """Return the repository for *target*.

        Raises
        ------
        ConfigurationError
            If *target* is not a known target or has no repository.
        """
        try:
            resolved = VectorTarget(target)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown vector target {target!r}") from exc

        store = self._stores.get(resolved)
        if store is None:
            raise ConfigurationError(f"No vector store configured for {resolved.value!r}")
        return store
