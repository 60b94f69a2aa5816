"""
Xcode 工程（`project.pbxproj`）的查询与幂等修改封装。

解析与写回交给 `pbxproj` 库，文件保持 Xcode/Cordova 使用的 OpenStep 格式。
对象按 UUID 存放，通过 `isa` 分区。除特别说明外，这里的方法都不会覆盖已有值或产生重复项。
"""

from __future__ import annotations

import os
from typing import Any

import pbxproj
from pbxproj.PBXGenericObject import PBXGenericObject

from .types import MissingArgumentError

PBXPROJ_NAME = "project.pbxproj"
GROUP_TREE = "<group>"


def _strip_quotes(value: str) -> str:
    return value.replace('"', "")


def _get(obj: Any, key: str) -> Any:
    return obj[key] if key in obj else None


def _child(parent: Any, key: str) -> Any:
    """返回 `parent[key]`，不存在时创建空对象。"""
    if _get(parent, key) is None:
        parent[key] = PBXGenericObject(parent=parent)
    return parent[key]


class XcodeProject:
    """已解析的 Xcode 工程；`filepath` 指向 `project.pbxproj`。"""

    def __init__(self, project: pbxproj.XcodeProject, filepath: str = "") -> None:
        self.project = project
        self.filepath = filepath

    @property
    def objects(self) -> Any:
        objects = _get(self.project, "objects")
        if objects is None:
            raise SystemExit(f"Error: not an Xcode project file: {self.filepath}")
        return objects

    def _section(self, isa: str) -> dict[str, Any]:
        return {obj.get_id(): obj for obj in self.objects.get_objects_in_section(isa)}

    def build_configuration_section(self) -> dict[str, Any]:
        return self._section("XCBuildConfiguration")

    def configuration_list_section(self) -> dict[str, Any]:
        return self._section("XCConfigurationList")

    def native_target_section(self) -> dict[str, Any]:
        return self._section("PBXNativeTarget")

    def project_section(self) -> dict[str, Any]:
        return self._section("PBXProject")

    def _root_project(self) -> Any:
        root = self.project_section().get(_get(self.project, "rootObject"))
        if root is None:
            raise SystemExit(f"Error: not an Xcode project file: {self.filepath} (no PBXProject root)")
        return root

    # --- 主 target 与构建配置 ---

    def primary_native_target_uuid(self) -> str:
        """返回主 native target 的 UUID（按工程 `targets` 顺序取第一个）。"""
        natives = self.native_target_section()
        for target_id in _get(self._root_project(), "targets") or []:
            if target_id in natives:
                return target_id
        if not natives:
            raise SystemExit("Error: no PBXNativeTarget found in project")
        return next(iter(natives))

    def primary_native_target(self) -> Any:
        return self.native_target_section()[self.primary_native_target_uuid()]

    def target_name(self) -> str:
        return str(_get(self.primary_native_target(), "name") or "")

    def native_target_config_list(self) -> list[str]:
        """返回主 native target 全部构建配置的 UUID 列表。"""
        list_uuid = _get(self.primary_native_target(), "buildConfigurationList")
        config_list = self.configuration_list_section().get(list_uuid)
        if config_list is None:
            raise SystemExit(f"Error: configuration list not found: {list_uuid}")
        return list(_get(config_list, "buildConfigurations") or [])

    def _config(self, config: str, op: str) -> Any:
        obj = self.build_configuration_section().get(config) if config else None
        if obj is None:
            raise MissingArgumentError(f"Invalid argument config for {op}")
        return obj

    def build_setting(self, config: str, key: str) -> Any:
        """读取单个构建参数，不存在时返回 `None`。"""
        settings = _get(self._config(config, "build_setting"), "buildSettings")
        if settings is None:
            return None
        return _get(settings, key)

    def build_setting_list(self, config: str, key: str) -> list[str]:
        """读取构建参数并规整为数组（单字符串视为一个元素）。"""
        value = self.build_setting(config, key)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list):
            raise TypeError(f"build setting is not an array: {key}")
        return list(value)

    def config_name(self, config: str) -> str:
        return str(_get(self._config(config, "config_name"), "name") or config)

    def plist_file_name(self, config: str) -> str | None:
        """返回配置对应的 `INFOPLIST_FILE` 相对路径。"""
        self._config(config, "plist_file_name")
        value = self.build_setting(config, "INFOPLIST_FILE")
        return _strip_quotes(value) if value else None

    def has_entitlements(self, config: str) -> bool:
        self._config(config, "has_entitlements")
        return bool(self.entitlements_file_name(config))

    def entitlements_file_name(self, config: str) -> str | None:
        """返回配置对应的 `CODE_SIGN_ENTITLEMENTS` 相对路径；空值视为未声明。"""
        self._config(config, "entitlements_file_name")
        value = self.build_setting(config, "CODE_SIGN_ENTITLEMENTS")
        value = _strip_quotes(value) if value else ""
        return value or None

    def set_entitlements_file_name(self, config: str, name: str) -> bool:
        """仅在配置尚未声明签名权限文件（含空值）时写入，返回是否写入。"""
        obj = self._config(config, "set_entitlements_file_name")
        if not name:
            raise MissingArgumentError("Invalid argument name for set_entitlements_file_name")
        if self.has_entitlements(config):
            return False
        obj.set_flags("CODE_SIGN_ENTITLEMENTS", name)
        return True

    def project_name(self) -> str:
        """从 `<Name>.xcodeproj/project.pbxproj` 路径推导工程名。"""
        if not self.filepath:
            raise MissingArgumentError("No xcodeproj filepath set")
        parent = os.path.basename(os.path.dirname(os.path.abspath(self.filepath)))
        name, ext = os.path.splitext(parent)
        if not name or ext != ".xcodeproj":
            raise MissingArgumentError(f"Bad xcodeproj filepath: {self.filepath}")
        return name

    # --- 构建参数 ---

    def _add_unique_flag(self, config: str, key: str, value: str, op: str) -> None:
        obj = self._config(config, op)
        if not value:
            raise MissingArgumentError(f"Invalid argument for {op}")
        if value not in self.build_setting_list(config, key):
            obj.add_flags(key, [value])

    def add_to_other_linker_flags(self, flag: str) -> None:
        for config in self.native_target_config_list():
            self._add_unique_flag(config, "OTHER_LDFLAGS", flag, "add_to_other_linker_flags")

    def add_new_to_other_linker_flags(self, flag: str) -> bool:
        """任一主配置缺少该链接参数时，为所有主配置补上；返回是否有改动。"""
        if not flag:
            raise MissingArgumentError("Invalid argument flag for add_new_to_other_linker_flags")
        missing = any(
            flag not in self.build_setting_list(config, "OTHER_LDFLAGS")
            for config in self.native_target_config_list()
        )
        if missing:
            self.add_to_other_linker_flags(flag)
        return missing

    def add_force_load_library(self, config: str, library: str) -> None:
        obj = self._config(config, "add_force_load_library")
        if not library:
            raise MissingArgumentError("Invalid argument library for add_force_load_library")
        flags = self.build_setting_list(config, "OTHER_LDFLAGS")
        if library not in flags:
            obj.set_flags("OTHER_LDFLAGS", flags + ["-force_load", library])

    def add_header_search_path(self, config: str, path: str) -> None:
        self._add_unique_flag(config, "HEADER_SEARCH_PATHS", path, "add_header_search_path")

    def add_library_search_path(self, config: str, path: str) -> None:
        self._add_unique_flag(config, "LIBRARY_SEARCH_PATHS", path, "add_library_search_path")

    def disable_bitcode(self, config: str) -> None:
        """关闭 bitcode；会覆盖已有的 `ENABLE_BITCODE`。"""
        self._config(config, "disable_bitcode").set_flags("ENABLE_BITCODE", "NO")

    def enable_keychain_sharing(self) -> None:
        """在 PBXProject 的 TargetAttributes 中打开主 target 的钥匙串共享能力。"""
        cursor = _child(self._root_project(), "attributes")
        for key in (
            "TargetAttributes",
            self.primary_native_target_uuid(),
            "SystemCapabilities",
            "com.apple.Keychain",
        ):
            cursor = _child(cursor, key)
        cursor["enabled"] = "1"

    # --- 资源文件 ---

    def _file_reference(self, path: str) -> str | None:
        for ref_id, ref in self._section("PBXFileReference").items():
            if _get(ref, "path") == path:
                return ref_id
        return None

    def add_resource_file(self, path: str) -> str:
        """把文件引用加入 Resources 分组并挂到主 target 上，返回文件引用 UUID。"""
        if not path:
            raise MissingArgumentError("Invalid argument path for add_resource_file")
        ref_id = self._file_reference(path)
        if ref_id is not None:
            return ref_id

        groups = self.project.get_groups_by_name("Resources")
        self.project.add_file(
            path,
            parent=groups[0] if groups else None,
            tree=GROUP_TREE,
            target_name=self.target_name(),
            force=False,
        )
        ref_id = self._file_reference(path)
        if ref_id is None:
            raise RuntimeError(f"Failed to add resource file: {path}")
        return ref_id

    def save(self) -> None:
        """以 OpenStep 格式写回 `project.pbxproj`。"""
        if not self.filepath:
            raise MissingArgumentError("No xcodeproj filepath set")
        self.project.save(self.filepath)


def resolve_pbxproj_path(path: str) -> str:
    """接受 `.xcodeproj` 目录或 `project.pbxproj` 文件路径。"""
    if os.path.isdir(path):
        return os.path.join(path, PBXPROJ_NAME)
    return path


def load_xcode_project(path: str, *, verbose: bool = False) -> XcodeProject:
    """读取并解析工程文件，文件缺失或不是 Xcode 工程时报错。"""
    pbx_path = resolve_pbxproj_path(path)
    if not os.path.isfile(pbx_path):
        raise SystemExit(f"Error: pbxproj not found: {pbx_path}")

    if verbose:
        print(f"+ parse {pbx_path}")
    try:
        parsed = pbxproj.XcodeProject.load(pbx_path)
    except Exception as e:
        raise SystemExit(f"Error: not an Xcode project file: {pbx_path} ({e})") from e

    project = XcodeProject(parsed, filepath=pbx_path)
    project._root_project()
    return project
