"""In-place updates of an existing oct-tree after particles have drifted."""

from __future__ import annotations

from collections.abc import Sequence

from gadsidm.octree import NO_SOFT_TYPE, OctTree

_LEN_TOLERANCE = 0.999999


def _merge_soft(current: int, diff: int, candidate: int, soft: Sequence[float]) -> tuple[int, int]:
    """Fold one more softening type into the running (max type, mixed flag) pair."""
    if current == NO_SOFT_TYPE:
        return candidate, diff
    if candidate == NO_SOFT_TYPE:
        return current, diff
    if soft[candidate] > soft[current]:
        return candidate, 1
    if soft[candidate] < soft[current]:
        return current, 1
    return current, diff


def recompute_moments(tree: OctTree, force_softening) -> None:
    """Recompute masses, centres of mass, velocities, hmax and softening flags.

    The tree topology and its threading are kept; only the node moments are
    refreshed from the current particle data and the given softening lengths.
    """
    soft = tuple(float(s) for s in force_softening)
    for part in tree.particles:
        if not 0 <= part.ptype < len(soft):
            raise ValueError(f"particle type {part.ptype} has no softening length")
    tree.force_softening = soft

    root = tree.root
    # Daughter nodes are always created after their parents, so walking the
    # node list backwards visits every child before its parent.
    for node in reversed(tree.nodes):
        mass = 0.0
        s = [0.0, 0.0, 0.0]
        vs = [0.0, 0.0, 0.0]
        hmax = 0.0
        maxtype = NO_SOFT_TYPE
        diff = 0

        for p in node.suns:
            if p < 0:
                continue
            if p >= root:
                child = tree.nodes[p - root]
                mass += child.mass
                for k in range(3):
                    s[k] += child.mass * child.com[k]
                    vs[k] += child.mass * child.vel_com[k]
                hmax = max(hmax, child.hmax)
                diff |= int(child.has_mixed_softening)
                maxtype, diff = _merge_soft(maxtype, diff, child.max_soft_type, soft)
            else:
                part = tree.particles[p]
                mass += part.mass
                for k in range(3):
                    s[k] += part.mass * part.pos[k]
                    vs[k] += part.mass * part.vel[k]
                maxtype, diff = _merge_soft(maxtype, diff, part.ptype, soft)
                if part.ptype == 0:
                    hmax = max(hmax, part.hsml)

        if mass:
            node.com = [c / mass for c in s]
            node.vel_com = [c / mass for c in vs]
        else:
            node.com = list(node.center)
            node.vel_com = vs
        node.mass = mass
        node.hmax = hmax
        node.bitflags = 4 * maxtype + 32 * diff


def update_node_len(tree: OctTree) -> int:
    """Enlarge nodes so that they again enclose their particles and daughters.

    Returns the number of node enlargements made.
    """
    root = tree.root
    enlarged = 0
    for i, part in enumerate(tree.particles):
        no = tree.father[i]
        if no < root:
            continue
        node = tree.nodes[no - root]
        distmax = max(abs(part.pos[k] - node.center[k]) for k in range(3))
        if distmax + distmax <= node.length:
            continue

        node.length = distmax + distmax
        enlarged += 1
        p = node.father
        while p >= 0:
            parent = tree.nodes[p - root]
            span = abs(parent.center[0] - node.center[0])
            span = span + span + node.length
            if _LEN_TOLERANCE * span <= parent.length:
                break
            parent.length = span
            enlarged += 1
            node = parent
            p = parent.father
    return enlarged


def update_node_hmax(tree: OctTree) -> int:
    """Raise node hmax values to cover the smoothing lengths of gas particles.

    Returns the number of nodes whose hmax was raised.
    """
    root = tree.root
    raised = 0
    for i, part in enumerate(tree.particles):
        if part.ptype != 0:
            continue
        no = tree.father[i]
        if no < root:
            continue
        node = tree.nodes[no - root]
        if part.hsml <= node.hmax:
            continue

        node.hmax = part.hsml
        raised += 1
        p = node.father
        while p >= 0:
            parent = tree.nodes[p - root]
            if node.hmax <= parent.hmax:
                break
            parent.hmax = node.hmax
            raised += 1
            node = parent
            p = parent.father
    return raised