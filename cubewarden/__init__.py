"""
Cubewarden multi-cluster replication and liveness core.

This package provides the parts of a multi-cluster control plane that
keep member clusters consistent with a pivot cluster:
- ClusterRegistry: one live session per managed cluster
- Scout: per-cluster heartbeat health monitor
- SyncEngine / Gc: one-way pivot -> member replication and orphan sweeping

Architecture:
    Pivot -> (ClusterSyncer, Scout per member)
    Member -> (Warden: SyncManager, Gc, Reporter)

Usage:
    # Import components directly from their submodules
    from cubewarden.multicluster import ClusterRegistry, Scout
    from cubewarden.warden import Warden
"""
