class RegistryError(Exception):
    """Base class for cluster registry failures."""

    def __init__(self, cluster: str, message: str) -> None:
        self.cluster = cluster
        super().__init__(message)


class ClusterExistsError(RegistryError):
    def __init__(self, cluster: str) -> None:
        super().__init__(cluster, f"add: internal cluster {cluster} already exists")


class ClusterNotFoundError(RegistryError):
    def __init__(self, cluster: str, operation: str = "get") -> None:
        super().__init__(cluster, f"{operation}: internal cluster {cluster} not found")


class ClusterAbnormalError(RegistryError):
    def __init__(self, cluster: str) -> None:
        super().__init__(cluster, f"internal cluster {cluster} is abnormal, wait for recover")


class InvalidSessionError(RegistryError):
    def __init__(self, cluster: str, reason: str) -> None:
        super().__init__(cluster, f"invalid session for cluster {cluster}: {reason}")


class InvalidHeartbeatError(Exception):
    pass
