# azdcore

Building blocks for tools that work with `azure.yaml` projects:
nested user configuration with a local secret vault, per-project
environments stored as `.env` and `config.json` files, project file
parsing and saving, lifecycle events, and in-process telemetry attributes.

## Installation

```
pip install azdcore
```

To run the test suite:

```
pip install "azdcore[test]"
pytest
```

## Configuration

`azdcore.config.config.Config` stores nested values addressed by dotted paths.

```python
from azdcore.config.config import Config

cfg = Config({})
cfg.set("defaults.location", "westus2")
cfg.get("defaults.location")            # "westus2"
cfg.get("defaults.missing", "fallback") # "fallback"
cfg.set_secret("auth.token", "token")   # kept in a separate vault
cfg.get("auth.token")                   # "token"
cfg.unset("defaults")
```

`get_string`, `get_map` and `get_slice` return the value only when it has
the matching type, otherwise `None`. `get_section(path, SomeDataclass)`
builds a dataclass from the mapping at a path. `resolved_raw()` returns a
copy of the data with vault references replaced by their secrets. Errors
are raised as `ConfigError`.

`azdcore.config.manager` reads and writes configuration as JSON:

- `ConfigManager` saves to and loads from streams (indented, sorted keys).
- `FileConfigManager` saves to and loads from files; a config that uses a
  vault has the vault stored under `vaults/<id>.json` in the user
  configuration directory.
- `UserConfigManager` loads and saves `config.json` in the user
  configuration directory; a missing file loads as an empty `Config`.
- `get_user_config_dir()` returns `$AZD_CONFIG_DIR`, or `~/.azd`, creating
  it if needed.

## Projects and environments

`azdcore.context.find_project_context(wd)` walks up from `wd` to the
nearest directory holding `azure.yaml` and returns an `AzdContext`
(raising `NoProjectError` if there is none). The context knows where the
`.azure` environment directory is and records the default environment
via `set_project_state(ProjectState(...))`.

```python
from azdcore.context import find_project_context
from azdcore.config.manager import ConfigManager, FileConfigManager
from azdcore.environment.data_store import LocalFileDataStore, SaveOptions
from azdcore.environment.manager import EnvironmentManager, Spec

ctx = find_project_context(".")
store = LocalFileDataStore(ctx, FileConfigManager(ConfigManager()))
manager = EnvironmentManager(ctx, store, None)

env = manager.create(Spec(name="dev", location="eastus"))
env.dotenv_set("API_URL", "https://api.example.com")
manager.save(env, SaveOptions())

for description in manager.list():
    print(description.name, description.is_default)
```

`Environment` (in `azdcore.environment.environment`) holds the `.env`
values and a `Config`. `getenv` and `lookup_env` look in the `.env`
values first and then in the process environment. Saving merges the
in-memory values over what is on disk and replays deletions.

Environment names may contain only letters, digits and `-()_.`, from 1 to
64 characters; `is_valid_environment_name` checks this and `clean_name`
replaces any other character with a hyphen. `marshal_dotenv` and
`parse_dotenv` write and read the `.env` format.

## Project files

```python
from azdcore.project.project import load, save

project = load("azure.yaml")
for name, service in project.services.items():
    print(name, service.host, service.language, service.path())
save(project, "azure.yaml")
```

`parse` validates service languages and hosts, the provisioning provider
and an optional `requiredVersions.azd` semver range, raising
`ProjectParseError`. `new_project(path, name)` writes and reloads a new
project file; `load_config` and `save_config` handle the file as an
untyped `Config`. Option blocks (`AksOptions`, `DockerProjectOptions`,
`ProvisioningOptions` and others) live in `azdcore.contracts.options`,
hooks in `azdcore.contracts.hooks` and workflows in
`azdcore.contracts.workflow`.

## Versions

`azdcore.version` parses version strings of the form
`<semver> (commit <40 hex digits>)` with `version_info`, checks ranges
such as `">=1.0.0 <2.0.0 || 3.0.0"` with `version_in_range`, and builds a
user agent string with `user_agent`.

## Events and telemetry

`azdcore.project.event_dispatcher.EventDispatcher` registers handlers for
named events; `invoke(name, args, action)` raises `pre<name>`, runs the
action and raises `post<name>`. Handler failures are collected into one
`EventHandlerError`.

`azdcore.telemetry.baggage` has immutable `Baggage` of typed `Attribute`s
and context-variable scopes for it; `azdcore.telemetry.attributes` has
thread-safe global and usage attribute stores that can set, append,
merge unique values and increment; `azdcore.telemetry.events` names
command events (`get_command_event_name("azd env list") == "cmd.env.list"`).

## What it does not do

- There is no command-line program; the package is a library only.
- Environments are stored on the local file system only. `EnvironmentManager`
  accepts any object with the `DataStore` methods as a remote store, but no
  remote store is included.
- Telemetry attributes are only collected in memory; nothing creates spans
  or sends telemetry anywhere.