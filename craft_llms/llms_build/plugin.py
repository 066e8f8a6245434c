from pathlib import Path

from mkdocs.config.config_options import Type
from mkdocs.exceptions import PluginError
from mkdocs.plugins import BasePlugin
from mkdocs.utils import log

from craft_llms.errors import BuildError
from craft_llms.llms_build.builder import build
from craft_llms.llms_build.config import BuildConfig, load_build_config


# Define plugin class
class CraftLlmsPlugin(BasePlugin):
    # Options from mkdocs.yml; empty values fall back to the BuildConfig defaults
    config_scheme = (
        ("llms_config", Type(str, default="")),
        ("base_url", Type(str, default="")),
        ("docs_repo", Type(str, default="")),
        ("docs_dir", Type(str, default="")),
        ("output_subdir", Type(str, default="")),
        ("sync", Type(bool, default=True)),
        ("include_max_depth", Type(int, default=5)),
    )

    def load_build_config(self, project_root: Path, site_dir: Path) -> BuildConfig:
        """Merge the optional llms config file with the options set in mkdocs.yml."""
        config_file = self.config["llms_config"]
        path = (project_root / config_file).resolve() if config_file else None
        build_config = load_build_config(path, env={})

        overrides = {
            key: self.config[key]
            for key in ("base_url", "docs_repo")
            if self.config[key]
        }
        if self.config["docs_dir"]:
            overrides["docs_dir"] = str((project_root / self.config["docs_dir"]).resolve())
        overrides["output_dir"] = str((site_dir / self.config["output_subdir"]).resolve())
        overrides["sync"] = self.config["sync"]
        overrides["include_max_depth"] = self.config["include_max_depth"]
        return build_config.merge(overrides)

    # Process will start after site build is complete
    def on_post_build(self, config):
        project_root = Path(config["config_file_path"]).resolve().parent
        site_dir = Path(config["site_dir"]).resolve()
        try:
            build_config = self.load_build_config(project_root, site_dir)
            result = build(build_config)
        except (BuildError, OSError) as exc:
            raise PluginError(f"[craft_llms] build failed: {exc}") from exc

        log.info(
            f"[craft_llms] generated {result.total_files} pages into {result.full_path.parent}"
        )
