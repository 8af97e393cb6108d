from __future__ import annotations


class CreateSystemError(RuntimeError):
    """Base class for failures while creating a recovery system."""


class NotRecoveryCapableError(CreateSystemError):
    pass


class ModelError(CreateSystemError):
    """The model does not describe a usable set of essential snaps."""


class InternalError(CreateSystemError):
    """Conditions that must not happen with validated inputs.

    Raised for missing mandatory snaps and for asserted snaps that cannot be
    matched with assertions. These are never transient.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"internal error: {message}")


class EssentialSnapMissingError(InternalError):
    def __init__(self, name: str, role: str) -> None:
        super().__init__(f'essential snap "{name}" ({role}) not present')
        self.name = name
        self.role = role


class RequiredSnapMissingError(InternalError):
    def __init__(self, name: str) -> None:
        super().__init__(f'non-essential but "required" snap "{name}" not present')
        self.name = name


class NoAssertionsError(InternalError):
    def __init__(self, snap_id: str) -> None:
        super().__init__(f"no assertions for asserted snap with ID: {snap_id}")
        self.snap_id = snap_id


class SnapInfoError(CreateSystemError):
    """The info getter failed for a snap."""


class EssentialSnapInfoError(SnapInfoError):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"cannot obtain snap information: {cause}")


class NonEssentialSnapInfoError(SnapInfoError):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"cannot obtain non-essential snap information: {cause}")


class MissingBaseError(CreateSystemError):
    pass


class DestinationExistsError(CreateSystemError):
    def __init__(self, path: str) -> None:
        super().__init__(f"unable to create {path}: file exists")
        self.path = path


class GadgetError(CreateSystemError):
    pass


class BootEnvError(CreateSystemError):
    pass
