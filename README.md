# escapepod

Building blocks for a local server that looks after Vector robots on your
own network:

- **License keys**: sign and verify per-robot license keys
  (`escapepod.issuer`, `escapepod.validator`, `escapepod.licenseformat`).
- **License store**: keep accepted keys in a JSON file
  (`escapepod.filestore`) and track which robots are licensed
  (`escapepod.interceptor`).
- **Bluetooth setup**: a state machine around a robot's BLE session:
  scan, connect, pin, auth, settings, Wi-Fi, OTA and log download
  (`escapepod.bluey`).
- **Journal parsing**: turn journal output into structured log entries
  (`escapepod.journal`).
- **Web UI**: a WSGI application that serves the single-page UI, OTA files
  and logs (`escapepod.webui`), request counters (`escapepod.debugmetrics`)
  and a health check (`escapepod.health`).
- **Settings**: command-line flags that fall back to environment variables
  (`escapepod.flags`) and build information (`escapepod.version`).
- **Errors**: `escapepod.rpcstatus.RpcError` carries a `Code` (the usual RPC
  status codes) and a message; the service classes raise it.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Issuing a license key

The `escapepod-license` command signs a key for one robot and prints it.
It needs the user's e-mail address, the robot serial (with its `vic:`
prefix) and the path of a PEM file holding the RSA signing key (a
`PRIVATE KEY` or `RSA PRIVATE KEY` block in PKCS#8 form):

```
escapepod-license --email user@example.com --robot vic:00000000 --key signing-key.pem
```

The single-dash forms `-email`, `-robot` and `-key` work as well. The robot
serial is lower-cased before signing. If any of the three is missing, the
command prints its usage to standard error and exits with status 1; it also
exits with status 1 if the key file cannot be read or loaded.

## Working with keys from Python

```python
from escapepod.issuer import Issuer
from escapepod.validator import Validator
from escapepod.licenseformat import License

issuer = Issuer(private_key_pem)
validator = Validator(public_key_pem)

key = issuer.generate(License(email="user@example.com", version="1.0", bot="vic:00000000"))
payload = validator.validate_string(key)
print(payload.license.bot)
```

A key is the base64 of a JSON document `{"payload": {...}, "signature": "..."}`
holding the license (empty fields left out) and an RSA PKCS#1 v1.5
signature over the SHA-256 of the license's compact JSON
(`License.canonical_json()`). `Payload.to_string()` and
`Payload.from_string()` encode and decode keys. A key that cannot be decoded
raises `InvalidLicenseKey`; a bad signature raises `LicenseValidationError`
(a subclass of it). A key that cannot be loaded raises `KeyLoadError` from
`Issuer` and `ValueError` from `Validator`.

## Keeping licenses on disk

```python
from escapepod.filestore import LicensesManager
from escapepod.interceptor import Interceptor

store = LicensesManager(file_path="licenses.json", debugger=None)
gate = Interceptor(signing_key="placeholder", license_manager=store, validator=validator)

gate.add(key)                      # "ok"
gate.is_licensed("vic:00000000")   # True
gate.list()                        # ["vic:00000000"]
gate.delete("vic:00000000")
```

`LicensesManager` keeps the payloads as a JSON list in one file (by default
`licenses` in the temporary directory). It offers `add_license`,
`delete_license`, `list_bots`, `list_licenses`, `purge` (empty the file) and
`drop` (delete the file). Adding an identical license twice raises
`DocumentExistsError`; deleting a robot that is not stored raises
`NotFoundError`. A `debugger` object, if given, has its `debug(msg, *args)`
called as the store works.

`Interceptor` wraps a store and a validator and raises `RpcError`:

- `add` with a key that does not validate: `INVALID_ARGUMENT`; with a key
  already stored: `ALREADY_EXISTS`.
- `delete` with an empty robot: `INVALID_ARGUMENT`; with a robot not stored:
  `NOT_FOUND`.
- `list` when the store cannot be read: `INTERNAL`.

After each add or delete the set of licensed robots is reloaded from the
store. If any stored license fails validation, the reload fails: the
constructor raises `InvalidLicenseKey`, and `add`/`delete` raise `RpcError`
with `INTERNAL`, leaving the previous set of licensed robots in place.

`escapepod.mongostore.MongoLicensesManager` has the same methods, checks
that it was given a collection name and a database object (binding
`db.get_collection(name)`), but stores nothing: its listings are always
empty.

## Bluetooth setup

`escapepod.bluey.Bluey` tracks the session `Status` and refuses commands in
the wrong state with `RpcError(INVALID_ARGUMENT, ...)`. It does not talk to
Bluetooth itself: pass a `connection_factory`, which `init()` calls with
`log_directory` and `status_queue` keywords, and which must return an object
with `close`, `connect`, `scan`, `send_pin`, `get_status`, `auth`,
`configure_settings`, `wifi_scan`, `wifi_connect`, `ota_start`,
`ota_cancel` and `download_logs`.

The usual order is `init()`, `scan()`, `connect(id)`, `send_pin(pin)`
(now authorized), then `status()`, `wifi_scan()`, `wifi_connect(...)`,
`ota_start(url)`, `ota_cancel()` and `auth(token)` (now authenticated),
after which `configure(VectorSettings(...))` is allowed. `ota_start` and
`fetch_logs` run in background threads; the OTA outcome is put on the status
queue as `{"ota_status": {"error": message}}`, with status codes described
by `translate_status`. `list_logs()` and `delete_logs(name)` work on the
log directory.

## Journal parsing

`escapepod.journal` works on text or byte chunks you supply:
`split_lines` yields complete lines, `parse_entries` yields a `LogEntry` per
line (control and non-ASCII characters stripped, unreadable JSON giving an
empty entry), `trace_entries` keeps the speech parser's entries and
`incoming_text_entries` keeps entries that carry recognised speech.
`format_entry(fields)` renders a journal record's `MESSAGE` with a newline.

## Web UI

`escapepod.webui.UIServer` is a WSGI application. On construction it reads
`index.html` from `<root_dir>/<ui_dir>` (defaults `/usr/lib/escape-pod` and
`dist`) and fails if it is missing. It serves:

| Method | Path | Purpose |
| --- | --- | --- |
| GET | `/api/v1/ota` | list OTA files as `{"files": [...]}` |
| POST | `/api/v1/ota` | upload an OTA file (form fields `file`, `file_name`) |
| GET / DELETE | `/api/v1/ota/<name>` | fetch or delete an OTA file |
| GET | `/api/v1/ota/whoami` | local address, `port` and `wsPort` |
| GET | `/api/v1/logs`, `/api/v1/logs/<name>` | list or fetch logs |
| GET | `/api/v1/version` | build information |
| GET | `/` and `/<name>` | the single-page UI, falling back to `index.html` |

OTA files and logs live in the `ota` and `logs` directories under the root.
`{{ .Version }}` in the index page is replaced by the build version.
Requests with an `Origin` header get CORS headers for any origin.
`UIServer.serve()` runs it on the configured port with a 600-second socket
timeout.

`escapepod.debugmetrics.Metrics().wrap(app)` counts requests and samples the
thread count every 100 requests; `snapshot()` returns both.
`escapepod.health.ok_app` answers `ok` on `/ok`, and `health.serve(port)`
runs it (port 8080 by default).

## Settings

`escapepod.flags.parse_flags(flags, argv, environ)` returns flag values by
name; command-line values win over environment variables, which win over
defaults. `APP_FLAGS`, `JDOCS_FLAGS` and `VERSION_FLAGS` describe the
server's flags; an app flag such as `root-directory` is also read from
`ROOT_DIRECTORY` (`flag_name_to_env`). `escapepod.version` holds the build
strings and `default_version_response()`.

## What this package does not do

- It has no Bluetooth driver; a connection object must be supplied.
- It has no speech-to-text, intent matching, document or token services,
  and no RPC server to host the service classes.
- The web UI has no websocket endpoints for download status or parsed
  intents.
- It does not read the system journal itself; the journal helpers parse
  output handed to them.
- `MongoLicensesManager` does not persist anything.