# Overview: Manager/employee reporting-chain helpers; cycle detection and visibility rules.

"""
Management Hierarchy

WHY: Users report to a manager inside their project. Assignments must never
create a loop (A manages B manages A), and visibility/permission rules walk
the same reporting chains.

All functions here are pure. They take an explicit `user_id -> manager_id`
lookup (or objects exposing id/role/manager_id) so callers decide how the
data is loaded. Every walk keeps a visited set, so cycles already present in
stored data terminate instead of looping.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol

from ..models.auth import ROLE_ADMIN, ROLE_MANAGER


class HierarchyMember(Protocol):
    id: int
    role: str
    manager_id: int | None


def manager_lookup(users: Iterable[HierarchyMember]) -> dict[int, int | None]:
    return {u.id: u.manager_id for u in users}


def would_create_cycle(
    employee_id: int,
    manager_id: int | None,
    manager_of: Mapping[int, int | None],
) -> bool:
    """
    True if making manager_id the manager of employee_id closes a loop.

    Walks upward from the candidate manager through manager_of. Reaching the
    employee means the employee is already above the manager in the chain.
    """
    if manager_id is None:
        return False
    if employee_id == manager_id:
        return True

    visited: set[int] = set()
    current: int | None = manager_id
    while current is not None and current not in visited:
        if current == employee_id:
            return True
        visited.add(current)
        current = manager_of.get(current)
    return False


def chain_of_command(user_id: int, manager_of: Mapping[int, int | None]) -> list[int]:
    """Managers above user_id, nearest first."""
    chain: list[int] = []
    visited = {user_id}
    current = manager_of.get(user_id)
    while current is not None and current not in visited:
        chain.append(current)
        visited.add(current)
        current = manager_of.get(current)
    return chain


def get_descendant_ids(user_id: int, manager_of: Mapping[int, int | None]) -> list[int]:
    """All direct and indirect reports of user_id (never includes user_id)."""
    children_map: dict[int, list[int]] = {}
    for uid, mid in manager_of.items():
        if mid is None:
            continue
        children_map.setdefault(mid, []).append(uid)

    result: list[int] = []
    seen = {user_id}
    stack = list(children_map.get(user_id, []))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        result.append(current)
        stack.extend(children_map.get(current, []))

    return result


def can_manage_user(actor: HierarchyMember, target: HierarchyMember, manager_of: Mapping[int, int | None]) -> bool:
    """
    ADMIN manages anyone in the project (caller has already scoped the
    project). MANAGER manages its direct and indirect reports.
    """
    if actor.role == ROLE_ADMIN:
        return True
    if actor.role == ROLE_MANAGER and actor.id != target.id:
        return target.id in get_descendant_ids(actor.id, manager_of)
    return False


def filter_visible_users(users: list, actor: HierarchyMember) -> list:
    """ADMIN sees everyone, MANAGER sees self + reports, EMPLOYEE sees self."""
    if actor.role == ROLE_ADMIN:
        return list(users)

    if actor.role == ROLE_MANAGER:
        visible = {actor.id}
        visible.update(get_descendant_ids(actor.id, manager_lookup(users)))
        return [u for u in users if u.id in visible]

    return [u for u in users if u.id == actor.id]


def build_hierarchy_tree(users: list, serialize=None) -> list[dict]:
    """
    Build a forest of {"user": ..., "employees": [...]} nodes.

    Users without a manager, or whose manager is outside the list, are roots.
    Members of a stored cycle are never reachable from a root; the first one
    encountered becomes a root and the walk stops where the cycle closes.
    """
    serialize = serialize or (lambda u: u.to_dict())
    by_id = {u.id: u for u in users}
    children: dict[int, list] = {}
    roots = []
    for u in users:
        if u.manager_id is not None and u.manager_id in by_id and u.manager_id != u.id:
            children.setdefault(u.manager_id, []).append(u)
        else:
            roots.append(u)

    placed: set[int] = set()

    def _build(user) -> dict:
        placed.add(user.id)
        employees = [
            _build(child) for child in children.get(user.id, [])
            if child.id not in placed
        ]
        return {"user": serialize(user), "employees": employees}

    forest = [_build(root) for root in roots]
    for u in users:
        if u.id not in placed:
            forest.append(_build(u))
    return forest
