from sailmcp.cluster.client import SAIL_OPERATOR_RESOURCES, ClusterClient, CustomResource

__all__ = ["SAIL_OPERATOR_RESOURCES", "ClusterClient", "CustomResource"]
