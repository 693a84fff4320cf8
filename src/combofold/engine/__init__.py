"""Collapse/visibility consistency engine.

Components, leaves first:
    ReachabilityWalker     descendants over real edges
    CollapseStateStore     DAG collapse set + combo collapse records
    ProxyEdgeSynthesizer   desired proxy edges, diffed against the model
    BoundsRefresher        combo geometry from visible members
    ConsistencyReapplier   re-enforce combo records after a DAG expand
    VisibilityReconciler   orchestrates every transition
"""

from combofold.engine.bounds import BoundsRefresher
from combofold.engine.ports import query_port_connections
from combofold.engine.proxy import ProxyEdgeSynthesizer, ProxyPatch, ProxySpec, proxy_edge_id
from combofold.engine.reachability import ReachabilityWalker
from combofold.engine.reapply import ConsistencyReapplier
from combofold.engine.state import CollapseStateStore, ComboCollapseRecord
from combofold.engine.visibility import TransitionResult, VisibilityReconciler

__all__ = [
    "BoundsRefresher",
    "CollapseStateStore",
    "ComboCollapseRecord",
    "ConsistencyReapplier",
    "ProxyEdgeSynthesizer",
    "ProxyPatch",
    "ProxySpec",
    "ReachabilityWalker",
    "TransitionResult",
    "VisibilityReconciler",
    "proxy_edge_id",
    "query_port_connections",
]
