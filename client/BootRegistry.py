"""Discovery of the catalog instances embedded in one page.

The server emits one descriptor per instance plus the JSON boot blob stored
under the descriptor's ``state_id``. The registry only serves the initial
mount: each uid is mounted at most once and the controllers are handed back
to the caller, never shared through the registry.
"""

from typing import Callable

from pydantic import ValidationError

from client.CatalogController import CatalogController
from shared.helper.HelperConfig import HelperConfig
from shared.models.boot import BootPayload, InstanceDescriptor

ControllerFactory = Callable[[BootPayload], CatalogController]


class BootRegistry:
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._entries: dict[str, tuple[InstanceDescriptor, str]] = {}
        self._mounted: set[str] = set()

    def register(self, descriptor: InstanceDescriptor, state_json: str) -> None:
        """Record an instance. Registering the same uid twice keeps the first entry."""
        if descriptor.uid in self._entries:
            self.logging.warning("Instance %s registered twice, keeping the first entry", descriptor.uid)
            return
        self._entries[descriptor.uid] = (descriptor, state_json)

    def get_descriptors(self) -> list[InstanceDescriptor]:
        return [descriptor for descriptor, _ in self._entries.values()]

    def is_mounted(self, uid: str) -> bool:
        return uid in self._mounted

    async def do_mount_all(self, controller_factory: ControllerFactory, query_string: str = "") -> list[CatalogController]:
        """Mount every registered instance that is not mounted yet.

        An instance whose boot blob cannot be decoded is skipped with a warning;
        it keeps showing its server-rendered markup.

        Args:
            controller_factory: Builds a controller for a decoded boot payload.
            query_string (str): The page's query string, passed to each mount.

        Returns:
            list[CatalogController]: The controllers mounted by this call.
        """
        controllers: list[CatalogController] = []
        for uid, (descriptor, state_json) in list(self._entries.items()):
            if uid in self._mounted:
                continue
            try:
                payload = BootPayload.model_validate_json(state_json or "{}")
            except ValidationError as e:
                self.logging.warning("Instance %s has an unreadable boot blob, not mounting: %s", uid, e)
                continue
            payload = payload.model_copy(update={"uid": uid})

            self._mounted.add(uid)
            controller = controller_factory(payload)
            await controller.do_mount(query_string)
            controllers.append(controller)
            self.logging.debug("Mounted instance %s (container %s)", uid, descriptor.container_id)
        return controllers
