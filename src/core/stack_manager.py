"""
Stack Manager

This module turns display sets into stacks: ordered tuples of image IDs, one
per renderable frame, stored under the display set's UID. While a stack is
built, one metadata record per image ID is added to the metadata provider;
overlays, orientation markers and reference lines read those records.

Generally find_stack is the only method viewports need. Code that wants to
know when stacks arrive registers a callback with add_stack_updated_callback.
clear_stacks and make_and_add_stack belong to study loading / unloading.

Inputs:
    - Study and DisplaySet objects
    - Stack-updated callbacks
    - Optional replacement stack builder

Outputs:
    - Stacks (tuples of image ID strings) keyed by display set UID
    - Metadata records in the metadata provider
    - Stack-updated callback invocations

Requirements:
    - typing for type hints
    - core.image_id / core.metadata_provider for the default builder
"""

from abc import ABC, abstractmethod
from functools import partial
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple
from core.image_id import get_image_id
from core.metadata_provider import MetadataProvider
from core.stack_errors import InvalidArgumentError
from core.stack_models import DisplaySet, StackImageMetadata, Study
from utils.config_manager import ConfigManager
from utils.debug_log import debug_log


ImageIdGetter = Callable[..., str]
Stack = Tuple[str, ...]
StackUpdatedCallback = Callable[[Stack], None]


class StackBuilder(ABC):
    """
    Strategy that builds the stack for a display set.

    Replace the whole strategy with StackManager.set_configuration to plug in
    a different stack construction policy.
    """

    @abstractmethod
    def build(self, study: Study, display_set: DisplaySet) -> List[str]:
        """
        Build the stack for a display set.

        Args:
            study: Study the display set belongs to
            display_set: The set of images to make the stack from

        Returns:
            List of image IDs
        """
        pass


class DefaultStackBuilder(StackBuilder):
    """
    Builds one image ID per image, or one per frame for multi-frame images,
    and adds a metadata record for each image ID.
    """

    def __init__(self, metadata_provider: MetadataProvider,
                 image_id_getter: Optional[ImageIdGetter] = None,
                 config_manager: Optional[ConfigManager] = None):
        """
        Initialize the builder.

        Args:
            metadata_provider: Store that receives one record per image ID
            image_id_getter: Called as image_id_getter(image) for single-frame
                images and image_id_getter(image, frame) for frames; defaults
                to get_image_id
            config_manager: Optional configuration; prefer_wadouri is read on
                every build when the default image_id_getter is used
        """
        self.metadata_provider = metadata_provider
        self.image_id_getter = image_id_getter
        self.config_manager = config_manager

    def build(self, study: Study, display_set: DisplaySet) -> List[str]:
        """
        Loop through the display set images and add their metadata to the
        metadata provider.

        Args:
            study: Study object
            display_set: The set of images to make the stack from

        Returns:
            List of image IDs, in display set order with frames ascending
        """
        get_id = self._resolve_image_id_getter()
        num_images = len(display_set.images)
        image_ids: List[str] = []

        for image_index, image in enumerate(display_set.images, start=1):
            if image.is_multiframe:
                debug_log("stack_manager.DefaultStackBuilder.build", "Multiframe image detected",
                          {"sop_instance_uid": image.sop_instance_uid,
                           "num_frames": image.num_frames})
                for frame in range(image.num_frames):
                    metadata = StackImageMetadata(image, display_set, study, num_images,
                                                  image_index, frame=frame)
                    image_id = get_id(image, frame)
                    image_ids.append(image_id)
                    self.metadata_provider.add_metadata(image_id, metadata)
            else:
                metadata = StackImageMetadata(image, display_set, study, num_images, image_index)
                image_id = get_id(image)
                image_ids.append(image_id)
                self.metadata_provider.add_metadata(image_id, metadata)

        return image_ids

    def _resolve_image_id_getter(self) -> ImageIdGetter:
        if self.image_id_getter is not None:
            return self.image_id_getter
        prefer_wadouri = self.config_manager.get_prefer_wadouri() if self.config_manager else False
        return partial(get_image_id, prefer_wadouri=prefer_wadouri)


class StackManager:
    """
    Registry of stacks keyed by display set UID.

    Stacks are stored as tuples, so the stack handed to callers, callbacks
    and get_all_stacks() cannot be changed in place.

    Handles:
    - Building and storing stacks through the active stack builder
    - Stack lookup
    - Clearing all stacks
    - Stack-updated callbacks
    - Replacing the stack builder
    """

    def __init__(self, builder: Optional[StackBuilder] = None,
                 metadata_provider: Optional[MetadataProvider] = None,
                 config_manager: Optional[ConfigManager] = None):
        """
        Initialize the stack manager.

        Args:
            builder: Stack builder to use; defaults to a DefaultStackBuilder
                over metadata_provider
            metadata_provider: Metadata store for the default builder; a new
                MetadataProvider is created if not given. When a builder is
                passed too, the builder decides where metadata goes and this
                provider is only exposed through the metadata_provider
                property (the builder is not wired to it).
            config_manager: Optional configuration (notify_on_build,
                prefer_wadouri); read on every build, defaults apply when not
                given
        """
        self.config_manager = config_manager
        self._metadata_provider = metadata_provider if metadata_provider is not None else MetadataProvider()
        if builder is None:
            builder = DefaultStackBuilder(self._metadata_provider, config_manager=config_manager)
        self._builder = builder
        self._stack_map: Dict[str, Stack] = {}
        self._stack_updated_callbacks: List[StackUpdatedCallback] = []

    @property
    def metadata_provider(self) -> MetadataProvider:
        """
        Metadata provider given to (or created for) the stack manager.

        Only the default builder writes to it; a builder passed in or set
        with set_configuration uses its own store.
        """
        return self._metadata_provider

    def clear_stacks(self) -> None:
        """Removes all current stacks. Registered callbacks are kept."""
        self._stack_map.clear()
        debug_log("stack_manager.clear_stacks", "Stacks cleared")

    def make_and_add_stack(self, study: Study, display_set: DisplaySet) -> Stack:
        """
        Create a stack from a display set, store it under the display set UID
        and notify stack-updated callbacks.

        A stack already stored under the same UID is replaced, not merged.

        Args:
            study: The study whose metadata will be added
            display_set: The set of images to make the stack from

        Returns:
            Tuple of image IDs
        """
        stack = tuple(self._builder.build(study, display_set))
        display_set_uid = display_set.display_set_instance_uid
        self._stack_map[display_set_uid] = stack
        debug_log("stack_manager.make_and_add_stack", "Stack stored",
                  {"display_set_instance_uid": display_set_uid, "image_ids": len(stack)})

        if self._should_notify():
            for callback in list(self._stack_updated_callbacks):
                callback(stack)

        return stack

    def find_stack(self, display_set_instance_uid: str) -> Optional[Stack]:
        """
        Find a stack from the currently created stacks.

        Args:
            display_set_instance_uid: The UID of the stack to find

        Returns:
            The stack if found, otherwise None
        """
        return self._stack_map.get(display_set_instance_uid)

    def has_stack(self, display_set_instance_uid: str) -> bool:
        """Return True if a stack is stored for the display set UID."""
        return display_set_instance_uid in self._stack_map

    def get_all_stacks(self) -> Mapping[str, Stack]:
        """
        Gets a read-only view of the display set UID -> stack map.

        The view is live: it reflects later builds and clear_stacks.

        Returns:
            Read-only mapping of display set UID to stack
        """
        return MappingProxyType(self._stack_map)

    def add_stack_updated_callback(self, callback: StackUpdatedCallback) -> None:
        """
        Adds a callback to be called when a stack is added or updated.

        Args:
            callback: Callable accepting at least one argument, the stack that
                was added or updated

        Raises:
            InvalidArgumentError: If callback is not callable
        """
        if not callable(callback):
            raise InvalidArgumentError("callback must be provided as a function")
        self._stack_updated_callbacks.append(callback)
        debug_log("stack_manager.add_stack_updated_callback", "Callback registered",
                  {"callbacks": len(self._stack_updated_callbacks)})

    def get_configuration(self) -> StackBuilder:
        """Return the active stack builder."""
        return self._builder

    def set_configuration(self, builder: StackBuilder) -> None:
        """
        Replace the active stack builder.

        The replacement is not checked; a builder without a usable build()
        fails on the next make_and_add_stack call.

        Args:
            builder: New stack builder
        """
        self._builder = builder
        debug_log("stack_manager.set_configuration", "Stack builder replaced",
                  {"builder": type(builder).__name__})

    def _should_notify(self) -> bool:
        """Return True if callbacks run on build (config key notify_on_build)."""
        if self.config_manager is None:
            return True
        return self.config_manager.get_notify_on_build()

    def __len__(self) -> int:
        return len(self._stack_map)

    def __contains__(self, display_set_instance_uid: str) -> bool:
        return display_set_instance_uid in self._stack_map
