# backend/core/loader.py

import importlib
import importlib.resources
import json
import logging
from typing import Any, Dict, List

from backend.core.contracts import Container, HookManager, PluginRegisterFunc

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 100


class PluginLoader:
    """
    发现并注册 plugins 包下的所有插件。
    每个插件目录必须带有 manifest.json，并在包的 __init__ 中导出 register_plugin(container, hook_manager)。
    """
    def __init__(self, container: Container, hook_manager: HookManager, package: str = "plugins"):
        self._container = container
        self._hook_manager = hook_manager
        self._package = package

    def load_plugins(self) -> List[Dict[str, Any]]:
        # 此时日志系统可能还未配置（core_logging 本身也是插件），所以用 print
        print(f"\n--- Plugin loader: scanning '{self._package}' ---")

        plugins = self._discover_plugins()
        if not plugins:
            print("警告：未发现任何插件。")
            return []

        plugins.sort(key=lambda p: (p['manifest'].get('priority', DEFAULT_PRIORITY), p['name']))
        for i, info in enumerate(plugins, start=1):
            print(f"  {i}. {info['name']} (priority: {info['manifest'].get('priority', DEFAULT_PRIORITY)})")

        self._register_plugins(plugins)
        manifests = [p['manifest'] for p in plugins]
        self._container.register("loaded_plugins_manifests", lambda: manifests)

        logger.info(f"{len(plugins)} plugin(s) loaded and registered.")
        print("--- Plugin loader: done ---\n")
        return manifests

    def _discover_plugins(self) -> List[Dict[str, Any]]:
        discovered = []
        try:
            package_root = importlib.resources.files(self._package)
        except ModuleNotFoundError:
            return discovered

        for plugin_path in package_root.iterdir():
            if not plugin_path.is_dir() or plugin_path.name.startswith(('__', '.')):
                continue

            manifest_path = plugin_path / "manifest.json"
            if not manifest_path.is_file():
                continue

            try:
                manifest = json.loads(manifest_path.read_text(encoding='utf-8'))
            except json.JSONDecodeError as e:
                print(f"Skipping plugin '{plugin_path.name}': invalid manifest.json ({e})")
                continue

            discovered.append({
                "name": manifest.get('name', plugin_path.name),
                "manifest": manifest,
                "import_path": f"{self._package}.{plugin_path.name}",
            })
        return discovered

    def _register_plugins(self, plugins: List[Dict[str, Any]]) -> None:
        for info in plugins:
            try:
                module = importlib.import_module(info['import_path'])
                register_func: PluginRegisterFunc = getattr(module, "register_plugin")
                register_func(self._container, self._hook_manager)
            except Exception as e:
                # 插件注册失败即终止启动
                print(f"\n!!! 致命错误：加载插件 '{info['name']}' ({info['import_path']}) 失败: {e!r}")
                raise RuntimeError(f"Failed to load plugin {info['name']}") from e
