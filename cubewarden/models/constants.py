"""
Well-known names shared by the pivot and member sides.
"""

# Name the pivot cluster registers itself under.
PIVOT_CLUSTER = "pivot-cluster"

# Registry key of the cluster the process itself runs in.
LOCAL_CLUSTER = "_local_cluster"

# Opt-in annotation marking an object as replicable to members.
SYNC_ANNOTATION = "kubecube.io/sync"

# Tracking annotation holding the pivot resource version at last replication.
PIVOT_RESOURCE_VERSION_ANNOTATION = "pivotResourceVersion"

# Escape hatch honored by the member delete-protection admission rule.
FORCE_DELETE_ANNOTATION = "kubecube.io/force-delete"

# Label set on objects propagated by namespace-hierarchy inheritance.
HNC_INHERITED_LABEL = "hnc.x-k8s.io/inherited-from"

LAST_APPLIED_CONFIG_ANNOTATION = "kubectl.kubernetes.io/last-applied-configuration"

CLUSTER_KIND = "Cluster"
CLUSTER_API_VERSION = "cluster.kubecube.io/v1"
