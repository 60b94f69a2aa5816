"""
plist 读写与幂等修改工具。

设计原则：
- 所有"添加"操作都不会产生重复数组元素。
- 仅在需要时创建中间容器（`dict` 或 `list`）。
- 删除操作采用尽力而为策略（路径不存在时忽略）。
"""

from __future__ import annotations

import plistlib
from typing import Any

PathElem = str | int


def load_plist(path: str) -> Any:
    """从磁盘读取 plist（自动识别 XML/Binary）并返回对象。"""
    with open(path, "rb") as f:
        return plistlib.load(f)


def dump_plist(obj: Any) -> bytes:
    """将对象序列化为 XML plist 字节串。"""
    return plistlib.dumps(obj, fmt=plistlib.FMT_XML, sort_keys=False)


def save_plist(path: str, obj: Any) -> None:
    """将对象以 XML plist 格式写回磁盘（与 Xcode 生成格式一致）。"""
    with open(path, "wb") as f:
        f.write(dump_plist(obj))


def parse_key_path(key_path: str) -> list[PathElem]:
    """
    将 PlistBuddy 风格路径解析为字典键/数组索引序列。

    - `IntuneMAMSettings:AppGroupIdentifiers` 表示两级字典键。
    - 纯数字段视为数组索引，例如 `CFBundleURLTypes:0:CFBundleURLSchemes`。
    - 允许以前导 `:` 开头。
    """
    s = key_path.strip()
    if s.startswith(":"):
        s = s[1:]
    if not s:
        raise ValueError("empty key path")
    out: list[PathElem] = []
    for p in s.split(":"):
        if p == "":
            raise ValueError(f"invalid key path: {key_path}")
        out.append(int(p) if p.isdigit() else p)
    return out


def _walk_create(root: Any, path: list[PathElem]) -> tuple[Any, PathElem]:
    """遍历到叶子的父节点，必要时创建中间字典，返回 `(parent, leaf_key)`。"""
    cur = root
    for elem in path[:-1]:
        if isinstance(elem, int):
            if not isinstance(cur, list) or elem >= len(cur):
                raise TypeError(f"array index out of range: {elem}")
            cur = cur[elem]
        else:
            if not isinstance(cur, dict):
                raise TypeError("dict key used on non-dict container")
            cur = ensure_dict(cur, elem)
    return cur, path[-1]


def set_value(root: Any, key_path: str, value: Any) -> None:
    """在指定 key path 处设置值（覆盖已有值）。"""
    parent, leaf = _walk_create(root, parse_key_path(key_path))
    if isinstance(leaf, int):
        if not isinstance(parent, list) or leaf >= len(parent):
            raise TypeError(f"array index out of range: {leaf}")
        parent[leaf] = value
        return
    set_unique_value(parent, leaf, value)


def get_value(root: Any, key_path: str) -> Any:
    """读取指定 key path 的值；路径不存在时返回 `None`。"""
    cur = root
    for elem in parse_key_path(key_path):
        if isinstance(elem, int):
            if not isinstance(cur, list) or elem >= len(cur):
                return None
        elif not isinstance(cur, dict) or elem not in cur:
            return None
        cur = cur[elem]
    return cur


def delete_value(root: Any, key_path: str) -> None:
    """删除指定 key path 对应值；路径不存在时静默跳过。"""
    path = parse_key_path(key_path)
    parent = get_value(root, ":".join(str(p) for p in path[:-1])) if len(path) > 1 else root
    leaf = path[-1]
    if isinstance(leaf, int):
        if isinstance(parent, list) and 0 <= leaf < len(parent):
            parent.pop(leaf)
    elif isinstance(parent, dict) and leaf in parent:
        del parent[leaf]


def ensure_dict(container: dict, key: str) -> dict:
    """确保 `container[key]` 是字典（不存在时创建空字典）并返回它。"""
    if container.get(key) is None:
        container[key] = {}
    value = container[key]
    if not isinstance(value, dict):
        raise TypeError(f"target is not a dict: {key}")
    return value


def add_unique_to_array(container: dict, key: str, value: Any) -> bool:
    """向 `container[key]` 数组追加元素（已存在则跳过），返回是否有改动。"""
    if container.get(key) is None:
        container[key] = []
    arr = container[key]
    if not isinstance(arr, list):
        raise TypeError(f"target is not an array: {key}")
    if value in arr:
        return False
    arr.append(value)
    return True


def set_unique_value(container: dict, key: str, value: Any) -> None:
    """设置 `container[key] = value`，已有值会被覆盖。"""
    container[key] = value

