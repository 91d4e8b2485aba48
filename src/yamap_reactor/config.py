"""Shared configuration contracts and validation helpers for yamap-reactor."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from .errors import ConfigError

CONFIG_PATH_ENV = "YAMAP_REACTOR_CONFIG"
VALID_BROWSER_ENGINES = {"chromium", "firefox", "webkit"}
VALID_GUARD_PLACEMENTS = {"before_dispatch", "after_dispatch"}
DEFAULT_CONFIG_FILENAME = "config.toml"

DEFAULT_CONFIG_TEMPLATE = """[app]
debug = false
artifacts_dir = "."

[site]
login_url = "https://yamap.com/login"
timeline_url = "https://yamap.com/timeline"
activities_url = "https://yamap.com/search/activities"
item_url_template = "https://yamap.com/activities/{id}"

[browser]
engine = "chromium"
headless = true
navigation_timeout_ms = 30000
action_timeout_ms = 10000
block_resources = true
viewport_width = 1280
viewport_height = 720
locale = "ja-JP"

[crawl]
timeline_stagnation_rounds = 3
activities_stagnation_rounds = 5
max_scrolls = 200
timeline_scroll_settle_seconds = 5.0
activities_scroll_settle_seconds = 3.0
guard_placement = "before_dispatch"
run_timeout_seconds = 3300
item_timeout_seconds = 300
max_reaction_attempts = 3
precheck_own_reaction = true
picker_settle_seconds = 2.0
reaction_settle_seconds = 3.0
reload_settle_seconds = 2.0
between_items_seconds = 2.0
post_login_settle_seconds = 5.0

[selectors]
timeline_feed_root = ".TimelineList__Feed"
activities_entry = '[data-testid="activity-entry"]'
activities_link = '[data-testid="activity-entry"] a[href^="/activities/"]'
detail_ready = ".FooterNav"
reaction_button = ".emoji-add-button"
reaction_picker = ".emojiPickerBody"
reaction_choice = '.emojiPickerBody .emoji-button[data-emoji-key="thumbsup"]'
own_reaction_marker = '[data-viewer-has-reacted="true"]'
login_email = 'input[name="email"]'
login_password = 'input[name="password"]'
login_submit = 'button[type="submit"]'
global_footer = 'footer[data-global-footer="true"]'
"""


@dataclass(frozen=True)
class AppConfig:
    debug: bool = False
    artifacts_dir: str = "."


@dataclass(frozen=True)
class SiteConfig:
    login_url: str = "https://yamap.com/login"
    timeline_url: str = "https://yamap.com/timeline"
    activities_url: str = "https://yamap.com/search/activities"
    item_url_template: str = "https://yamap.com/activities/{id}"


@dataclass(frozen=True)
class BrowserConfig:
    engine: str = "chromium"
    headless: bool = True
    navigation_timeout_ms: int = 30_000
    action_timeout_ms: int = 10_000
    block_resources: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    locale: str = "ja-JP"


@dataclass(frozen=True)
class CrawlConfig:
    timeline_stagnation_rounds: int = 3
    activities_stagnation_rounds: int = 5
    max_scrolls: int = 200
    timeline_scroll_settle_seconds: float = 5.0
    activities_scroll_settle_seconds: float = 3.0
    guard_placement: str = "before_dispatch"
    run_timeout_seconds: float = 3300.0
    item_timeout_seconds: float = 300.0
    max_reaction_attempts: int = 3
    precheck_own_reaction: bool = True
    picker_settle_seconds: float = 2.0
    reaction_settle_seconds: float = 3.0
    reload_settle_seconds: float = 2.0
    between_items_seconds: float = 2.0
    post_login_settle_seconds: float = 5.0


@dataclass(frozen=True)
class SelectorsConfig:
    timeline_feed_root: str = ".TimelineList__Feed"
    activities_entry: str = '[data-testid="activity-entry"]'
    activities_link: str = '[data-testid="activity-entry"] a[href^="/activities/"]'
    detail_ready: str = ".FooterNav"
    reaction_button: str = ".emoji-add-button"
    reaction_picker: str = ".emojiPickerBody"
    reaction_choice: str = '.emojiPickerBody .emoji-button[data-emoji-key="thumbsup"]'
    own_reaction_marker: str = '[data-viewer-has-reacted="true"]'
    login_email: str = 'input[name="email"]'
    login_password: str = 'input[name="password"]'
    login_submit: str = 'button[type="submit"]'
    global_footer: str = 'footer[data-global-footer="true"]'


@dataclass(frozen=True)
class RuntimeConfig:
    app: AppConfig = field(default_factory=AppConfig)
    site: SiteConfig = field(default_factory=SiteConfig)
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    selectors: SelectorsConfig = field(default_factory=SelectorsConfig)


def default_config() -> RuntimeConfig:
    return RuntimeConfig()


def default_config_toml() -> str:
    return DEFAULT_CONFIG_TEMPLATE


def resolve_config_path(config_path: str | Path | None = None) -> Path:
    if config_path:
        return Path(config_path).expanduser()

    env_value = os.getenv(CONFIG_PATH_ENV)
    if env_value:
        return Path(env_value).expanduser()

    config_dir = Path(user_config_dir("yamap-reactor", appauthor=False))
    return config_dir / DEFAULT_CONFIG_FILENAME


def init_default_config(config_path: str | Path | None = None, force: bool = False) -> Path:
    path = resolve_config_path(config_path)
    if path.exists() and path.is_dir():
        raise ConfigError(
            f"Config path '{path}' is a directory; expected a TOML file path (for example '{path / DEFAULT_CONFIG_FILENAME}')."
        )
    if path.exists() and not force:
        raise ConfigError(
            f"Config file already exists at '{path}'. Re-run with --force to overwrite."
        )

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(default_config_toml(), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Could not write config file at '{path}': {exc}. "
            "Check path permissions or choose a writable location with `--path`."
        ) from exc
    return path


def load_runtime_config(
    config_path: str | Path | None = None, *, allow_missing: bool = False
) -> RuntimeConfig:
    """Load TOML config; with allow_missing, an absent file yields built-in defaults."""
    path = resolve_config_path(config_path)
    if not path.exists():
        if allow_missing:
            return default_config()
        raise ConfigError(
            f"Config file not found at '{path}'. Run `yamap-react config init --path \"{path}\"` to generate defaults."
        )
    if path.is_dir():
        raise ConfigError(
            f"Config path '{path}' is a directory; pass a file path ending in '{DEFAULT_CONFIG_FILENAME}'."
        )

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Could not read config file '{path}': {exc}. "
            "Check file permissions and that the path points to a readable TOML file."
        ) from exc
    raw = _load_toml(text, path)
    return _parse_runtime_config(raw)


def config_to_dict(config: RuntimeConfig) -> dict[str, Any]:
    return asdict(config)


def _load_toml(text: str, path: Path) -> dict[str, Any]:
    try:
        import tomllib  # Python 3.11+
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore[no-redef]
        except ModuleNotFoundError as exc:
            raise ConfigError(
                "TOML parsing requires Python 3.11+ or `tomli` installed. "
                f"Could not parse config file '{path}'."
            ) from exc

    try:
        data = tomllib.loads(text)
    except Exception as exc:
        raise ConfigError(
            f"Config file '{path}' contains invalid TOML: {exc}. "
            "Fix the syntax or regenerate defaults with `yamap-react config init --force`."
        ) from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{path}' must parse to a TOML table.")
    return data


def _parse_runtime_config(data: dict[str, Any]) -> RuntimeConfig:
    app_raw = _expect_table(data, "app", default={})
    site_raw = _expect_table(data, "site", default={})
    browser_raw = _expect_table(data, "browser", default={})
    crawl_raw = _expect_table(data, "crawl", default={})
    selectors_raw = _expect_table(data, "selectors", default={})

    app_config = AppConfig(
        debug=_expect_bool(app_raw, "app.debug", default=False),
        artifacts_dir=_expect_non_empty_string(app_raw, "app.artifacts_dir", "."),
    )

    defaults_site = SiteConfig()
    site_config = SiteConfig(
        login_url=_expect_url(site_raw, "site.login_url", defaults_site.login_url),
        timeline_url=_expect_url(site_raw, "site.timeline_url", defaults_site.timeline_url),
        activities_url=_expect_url(site_raw, "site.activities_url", defaults_site.activities_url),
        item_url_template=_expect_item_url_template(
            site_raw, "site.item_url_template", defaults_site.item_url_template
        ),
    )

    browser_config = BrowserConfig(
        engine=_expect_choice(
            browser_raw,
            "browser.engine",
            default="chromium",
            valid_values=VALID_BROWSER_ENGINES,
        ),
        headless=_expect_bool(browser_raw, "browser.headless", default=True),
        navigation_timeout_ms=_expect_positive_int(
            browser_raw, "browser.navigation_timeout_ms", default=30_000
        ),
        action_timeout_ms=_expect_positive_int(browser_raw, "browser.action_timeout_ms", default=10_000),
        block_resources=_expect_bool(browser_raw, "browser.block_resources", default=True),
        viewport_width=_expect_positive_int(browser_raw, "browser.viewport_width", default=1280),
        viewport_height=_expect_positive_int(browser_raw, "browser.viewport_height", default=720),
        locale=_expect_non_empty_string(browser_raw, "browser.locale", "ja-JP"),
    )

    crawl_config = _parse_crawl_config(crawl_raw)

    defaults_selectors = SelectorsConfig()
    selector_values = {
        name: _expect_non_empty_string(selectors_raw, f"selectors.{name}", default)
        for name, default in asdict(defaults_selectors).items()
    }
    unknown = sorted(set(selectors_raw) - set(selector_values))
    if unknown:
        raise ConfigError(
            f"Unknown selector key(s) in [selectors]: {', '.join(unknown)}. "
            f"Supported keys: {', '.join(sorted(selector_values))}."
        )

    return RuntimeConfig(
        app=app_config,
        site=site_config,
        browser=browser_config,
        crawl=crawl_config,
        selectors=SelectorsConfig(**selector_values),
    )


def _parse_crawl_config(crawl_raw: dict[str, Any]) -> CrawlConfig:
    defaults = CrawlConfig()
    crawl = CrawlConfig(
        timeline_stagnation_rounds=_expect_positive_int(
            crawl_raw, "crawl.timeline_stagnation_rounds", default=defaults.timeline_stagnation_rounds
        ),
        activities_stagnation_rounds=_expect_positive_int(
            crawl_raw, "crawl.activities_stagnation_rounds", default=defaults.activities_stagnation_rounds
        ),
        max_scrolls=_expect_positive_int(crawl_raw, "crawl.max_scrolls", default=defaults.max_scrolls),
        timeline_scroll_settle_seconds=_expect_non_negative_float(
            crawl_raw,
            "crawl.timeline_scroll_settle_seconds",
            default=defaults.timeline_scroll_settle_seconds,
        ),
        activities_scroll_settle_seconds=_expect_non_negative_float(
            crawl_raw,
            "crawl.activities_scroll_settle_seconds",
            default=defaults.activities_scroll_settle_seconds,
        ),
        guard_placement=_expect_choice(
            crawl_raw,
            "crawl.guard_placement",
            default=defaults.guard_placement,
            valid_values=VALID_GUARD_PLACEMENTS,
        ),
        run_timeout_seconds=_expect_positive_float(
            crawl_raw, "crawl.run_timeout_seconds", default=defaults.run_timeout_seconds
        ),
        item_timeout_seconds=_expect_positive_float(
            crawl_raw, "crawl.item_timeout_seconds", default=defaults.item_timeout_seconds
        ),
        max_reaction_attempts=_expect_positive_int(
            crawl_raw, "crawl.max_reaction_attempts", default=defaults.max_reaction_attempts
        ),
        precheck_own_reaction=_expect_bool(
            crawl_raw, "crawl.precheck_own_reaction", default=defaults.precheck_own_reaction
        ),
        picker_settle_seconds=_expect_non_negative_float(
            crawl_raw, "crawl.picker_settle_seconds", default=defaults.picker_settle_seconds
        ),
        reaction_settle_seconds=_expect_non_negative_float(
            crawl_raw, "crawl.reaction_settle_seconds", default=defaults.reaction_settle_seconds
        ),
        reload_settle_seconds=_expect_non_negative_float(
            crawl_raw, "crawl.reload_settle_seconds", default=defaults.reload_settle_seconds
        ),
        between_items_seconds=_expect_non_negative_float(
            crawl_raw, "crawl.between_items_seconds", default=defaults.between_items_seconds
        ),
        post_login_settle_seconds=_expect_non_negative_float(
            crawl_raw, "crawl.post_login_settle_seconds", default=defaults.post_login_settle_seconds
        ),
    )
    if crawl.item_timeout_seconds >= crawl.run_timeout_seconds:
        raise ConfigError(
            "Invalid value for 'crawl.item_timeout_seconds': must be shorter than "
            "'crawl.run_timeout_seconds' so one stuck item cannot consume the whole run."
        )
    return crawl


def _expect_table(data: dict[str, Any], key: str, default: dict[str, Any]) -> dict[str, Any]:
    value = data.get(key, default)
    if not isinstance(value, dict):
        raise ConfigError(f"Invalid [{key}] table: expected table, got {type(value).__name__}.")
    return value


def _expect_non_empty_string(
    data: dict[str, Any], key: str, default: str | None
) -> str:
    if key.split(".")[-1] in data:
        value = data[key.split(".")[-1]]
    else:
        if default is None:
            raise ConfigError(f"Missing required value '{key}'.")
        value = default

    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Invalid value for '{key}': expected non-empty string.")
    return value


def _expect_url(data: dict[str, Any], key: str, default: str) -> str:
    value = _expect_non_empty_string(data, key, default)
    if not value.startswith(("http://", "https://")):
        raise ConfigError(f"Invalid value for '{key}': expected an http(s) URL.")
    return value


def _expect_item_url_template(data: dict[str, Any], key: str, default: str) -> str:
    value = _expect_url(data, key, default)
    if "{id}" not in value:
        raise ConfigError(f"Invalid value for '{key}': template must contain '{{id}}'.")
    return value


def _expect_positive_int(data: dict[str, Any], key: str, default: int) -> int:
    field = key.split(".")[-1]
    value = data.get(field, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"Invalid value for '{key}': expected positive integer.")
    return value


def _expect_positive_float(data: dict[str, Any], key: str, default: float) -> float:
    value = _expect_number(data, key, default)
    if value <= 0:
        raise ConfigError(f"Invalid value for '{key}': expected positive number.")
    return value


def _expect_non_negative_float(data: dict[str, Any], key: str, default: float) -> float:
    value = _expect_number(data, key, default)
    if value < 0:
        raise ConfigError(f"Invalid value for '{key}': expected number >= 0.")
    return value


def _expect_number(data: dict[str, Any], key: str, default: float) -> float:
    field = key.split(".")[-1]
    value = data.get(field, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Invalid value for '{key}': expected a number.")
    return float(value)


def _expect_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    field = key.split(".")[-1]
    value = data.get(field, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Invalid value for '{key}': expected boolean true/false.")
    return value


def _expect_choice(
    data: dict[str, Any],
    key: str,
    default: str | None,
    valid_values: set[str],
) -> str:
    field = key.split(".")[-1]
    if field in data:
        value = data[field]
    else:
        if default is None:
            raise ConfigError(f"Missing required value '{key}'.")
        value = default

    if not isinstance(value, str) or value not in valid_values:
        choices = ", ".join(sorted(valid_values))
        raise ConfigError(f"Invalid value for '{key}': expected one of [{choices}].")
    return value
