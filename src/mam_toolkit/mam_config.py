from __future__ import annotations

"""
Intune MAM configuration pass for a Cordova iOS platform directory.

High-level flow:
1) Walk the primary native target's build configurations and collect every
   Info.plist / entitlements file they reference. A configuration without an
   entitlements file gets one created and registered first.
2) Load all files.
3) For each (entitlements, Info.plist) pair apply the MAM steps in memory:
   keychain groups, storyboard/nib relocation, URL schemes, query schemes,
   app group identifiers, MDM-less settings.
4) Save all files.
5) Run IntuneMAMConfigurator once per distinct Info.plist.

Every step is idempotent: running the pass twice leaves the files unchanged.
"""

import os
from collections.abc import Iterable, Sequence

from . import configurator
from .info_plist import (
    MAIN_NIB,
    MAIN_NIB_IPAD,
    MAIN_STORYBOARD,
    MAIN_STORYBOARD_IPAD,
    PlistFile,
)
from .pipeline_utils import log_step
from .plist_edit import add_unique_to_array, dump_plist
from .types import MissingArgumentError, ProjectFileInfo
from .xcode_project import XcodeProject

INTUNE_SCHEME_SUFFIX = "-intunemam"

INTUNE_KEYCHAIN_GROUPS = (
    "com.microsoft.intune.mam",
    "com.microsoft.adalcache",
    "com.microsoft.workplacejoin",
)

INTUNE_QUERY_SCHEMES = (
    "http-intunemam",
    "https-intunemam",
    "ms-outlook-intunemam",
)

# Schemes that must never get an -intunemam variant.
QUERY_SCHEME_EXCLUDES = ("mailto",)


def is_intune_mam_scheme(scheme: str) -> bool:
    return scheme.endswith(INTUNE_SCHEME_SUFFIX)


def configure_keychain_access(plist: PlistFile, entitlements: PlistFile) -> None:
    bundle_id = plist.bundle_identifier
    if not bundle_id:
        raise MissingArgumentError(f"CFBundleIdentifier missing in {plist.filepath}")
    entitlements.add_keychain_access_group(bundle_id)
    for group in INTUNE_KEYCHAIN_GROUPS:
        entitlements.add_keychain_access_group(group)


def move_storyboards_nibs(plist: PlistFile) -> None:
    # Keys keep their names under IntuneMAMSettings.
    moves = (
        (plist.main_storyboard, MAIN_STORYBOARD),
        (plist.main_storyboard_ipad, MAIN_STORYBOARD_IPAD),
        (plist.main_nib, MAIN_NIB),
        (plist.main_nib_ipad, MAIN_NIB_IPAD),
    )
    for value, key in moves:
        if value:
            plist.add_storyboard_or_nib_to_intune(value, key)
    plist.delete_main_storyboard()
    plist.delete_main_storyboard_ipad()
    plist.delete_main_nib()
    plist.delete_main_nib_ipad()


def add_intune_url_schemes(plist: PlistFile) -> None:
    url_types = plist.url_types
    if not url_types:
        return
    for url_type in url_types:
        if not isinstance(url_type, dict) or not url_type.get("CFBundleURLSchemes"):
            continue
        for scheme in list(plist.url_schemes_from_url_type(url_type)):
            if not is_intune_mam_scheme(scheme):
                plist.add_url_scheme_to_url_type(url_type, scheme + INTUNE_SCHEME_SUFFIX)


def add_intune_app_queries_schemes(plist: PlistFile) -> None:
    for scheme in INTUNE_QUERY_SCHEMES:
        plist.add_application_queries_scheme(scheme)

    for scheme in list(plist.application_queries_schemes):
        if is_intune_mam_scheme(scheme) or scheme in QUERY_SCHEME_EXCLUDES:
            continue
        plist.add_application_queries_scheme(scheme + INTUNE_SCHEME_SUFFIX)


def configure_app_group_key(plist: PlistFile, entitlements: PlistFile) -> None:
    groups = entitlements.application_groups
    if groups:
        plist.add_app_group_settings(list(groups))


def set_mdmless_settings(plist: PlistFile) -> None:
    plist.set_mam_policy_required(True)
    plist.set_auto_enroll_on_launch(True)


def _find_file(filepath: str, files: Sequence[PlistFile]) -> PlistFile:
    for f in files:
        if f.filepath == filepath:
            return f
    raise SystemExit(f"Error: file was not loaded: {filepath}")


def _step(title: str, verbose: bool) -> None:
    if verbose:
        print(f"  - {title}")


def configure_entitlements_and_plists(
    mapping: dict[str, list[str]],
    files: Sequence[PlistFile],
    *,
    verbose: bool = False,
) -> None:
    """对每组 (entitlements, Info.plist) 依次执行全部 MAM 配置步骤。"""
    for entitlements_name, plist_names in mapping.items():
        entitlements = _find_file(entitlements_name, files)
        for plist_name in plist_names:
            log_step(f"Configuring {entitlements_name} and {plist_name}")
            plist = _find_file(plist_name, files)

            _step("Configuring keychain access", verbose)
            configure_keychain_access(plist, entitlements)
            _step("Moving storyboards and nibs", verbose)
            move_storyboards_nibs(plist)
            _step("Adding Intune URL schemes", verbose)
            add_intune_url_schemes(plist)
            _step("Adding Intune application queries", verbose)
            add_intune_app_queries_schemes(plist)
            _step("Moving application group identifiers", verbose)
            configure_app_group_key(plist, entitlements)
            _step("Setting MDM-less MAM settings", verbose)
            set_mdmless_settings(plist)


def create_entitlements_if_none(
    config: str,
    project: XcodeProject,
    platform_dir: str,
    *,
    write: bool = True,
) -> str:
    """
    配置未声明签名权限文件时新建 `<Name>/Resources/<Name>.entitlements`。

    新文件会登记到该配置的 `CODE_SIGN_ENTITLEMENTS` 并作为资源加入工程。
    返回新登记的相对路径；配置已有签名权限文件时返回空串。
    """
    if project.has_entitlements(config):
        return ""

    name = project.project_name()
    entitlements_path = f"{name}/Resources/{name}.entitlements"
    if write:
        resources_dir = os.path.join(platform_dir, name, "Resources")
        os.makedirs(resources_dir, exist_ok=True)
        target = os.path.join(platform_dir, entitlements_path)
        # 已存在的文件可能由其他配置共用，保留其内容。
        if not os.path.exists(target):
            with open(target, "wb") as f:
                f.write(dump_plist({}))

    project.set_entitlements_file_name(config, entitlements_path)
    project.add_resource_file(f"{name}.entitlements")
    return entitlements_path


def get_entitlements_and_plist_info(
    project: XcodeProject,
    platform_dir: str,
    *,
    write: bool = True,
) -> ProjectFileInfo:
    """汇总主 target 所有配置引用的文件，以及 entitlements 到 plist 的映射。"""
    info = ProjectFileInfo()
    for config in project.native_target_config_list():
        plist_name = project.plist_file_name(config)
        if not plist_name:
            raise MissingArgumentError(
                f"INFOPLIST_FILE missing for configuration {project.config_name(config)}"
            )
        if plist_name not in info.files:
            info.files.append(plist_name)

        created = create_entitlements_if_none(config, project, platform_dir, write=write)
        if created and created not in info.created:
            info.created.append(created)

        entitlements_name = project.entitlements_file_name(config)
        if not entitlements_name:
            raise MissingArgumentError(
                f"CODE_SIGN_ENTITLEMENTS missing for configuration {project.config_name(config)}"
            )
        if entitlements_name not in info.files:
            info.files.append(entitlements_name)
        add_unique_to_array(info.entitlements_plist_mapping, entitlements_name, plist_name)
    return info


def load_files(
    names: Iterable[str],
    platform_dir: str,
    *,
    new_files: Iterable[str] = (),
) -> list[PlistFile]:
    """读取全部文件；`new_files` 中尚未落盘的文件视为空字典。"""
    pending = set(new_files)
    out: list[PlistFile] = []
    for name in names:
        f = PlistFile(name, platform_dir)
        if name in pending and not os.path.isfile(f.abspath):
            f.data = {}
        else:
            f.load()
        out.append(f)
    return out


def save_files(files: Iterable[PlistFile]) -> None:
    for f in files:
        f.save()


def add_intune_utis(
    project: XcodeProject,
    platform_dir: str,
    configurator_path: str,
    *,
    verbose: bool = False,
) -> list[str]:
    """对每个不同的 Info.plist 调用一次配置器，返回处理过的绝对路径。"""
    plists: list[str] = []
    for config in project.native_target_config_list():
        name = project.plist_file_name(config)
        if not name:
            continue
        path = os.path.abspath(os.path.join(platform_dir, name))
        if path not in plists:
            plists.append(path)

    for path in plists:
        if verbose:
            print(f"Adding Intune UTIs: {path}")
        configurator.add_utis(configurator_path, path, verbose=verbose)
    return plists


def configure_intune_mam(
    project: XcodeProject,
    *,
    platform_dir: str,
    configurator_path: str = "",
    dry_run: bool = False,
    verbose: bool = False,
) -> ProjectFileInfo:
    """
    对平台目录执行完整的 MAM 配置流程，返回收集到的文件信息。

    `project` 只在内存中修改，由调用方决定是否 `save()`；`dry_run` 时不写任何文件。
    """
    log_step("Collecting Info.plist and entitlements files")
    info = get_entitlements_and_plist_info(project, platform_dir, write=not dry_run)
    for created in info.created:
        log_step(f"Created entitlements: {created}")

    log_step(f"Loading {len(info.files)} files")
    files = load_files(info.files, platform_dir, new_files=info.created)

    configure_entitlements_and_plists(info.entitlements_plist_mapping, files, verbose=verbose)

    if dry_run:
        log_step("Dry-run: skipping file writes and configurator")
        return info

    log_step("Saving files")
    save_files(files)

    if not configurator_path:
        log_step("No configurator given, skipping Intune UTI step")
        return info

    configurator.ensure_executable(configurator_path)
    log_step("Adding Intune UTIs to Info.plist files")
    add_intune_utis(project, platform_dir, configurator_path, verbose=verbose)
    return info
