# ovdiag

Building blocks for vehicle diagnostic tools that talk to ECUs over CAN
(ISO-TP) or K-Line. The package has no dependencies outside the standard
library.

## Modules

- `ovdiag.raf`: `Raf` is a random-access reader over a byte buffer. It reads
  `u8`/`i8` through `u64`/`i64`, `f32` and zero-terminated byte strings
  (`read_cstr_bytes`) in the byte order given by `ByteOrder.BE` or
  `ByteOrder.LE`. `seek`, `adv` and `seek_read` move around the buffer.
  `Raf.from_read` loads everything from a binary file object. A read past the
  end raises `BufferOverflowError` or `StartOutOfRangeError`. Both derive
  from `RafError`.
- `ovdiag.diag`: the diagnostic data model. It holds `Service`, `Parameter`,
  `DataFormat` (with `FormatKind` and `StringEncoding`), `TableData`, `Limit`
  and `ECUDTC`, each with `to_json`/`from_json`.
  - `Parameter.decode_value_to_string` and `Parameter.decode_value_to_number`
    decode a parameter from raw response bytes.
  - `Parameter.can_plot` tells whether the value can be charted. It is true
    for the Bool, Identical and Linear formats.
  - Decoding errors raise subclasses of `ParamDecodeError`:
    `BitRangeError`, `DecodeNotSupportedError` and
    `DecodeNotImplementedError`. The last is raised for ScaleLinear,
    RatFunc, ScaleRatFunc, TableInterpretation and CompuCode.
- `ovdiag.schema`: the ECU definition format. It holds `OvdECU`,
  `ECUVariantDefinition`, `ECUVariantPattern` and `Connection`, whose
  connection type is `LinConnection` or `IsoTpConnection`. It also holds the
  enums `ServerType` and `LinWakeUpType`. `loads_ecu`, `load_ecu` and
  `dumps_ecu` read and write definitions as JSON. Malformed input raises
  `ValueError`.
- `ovdiag.logview`: `LogView` is an ordered log of `LogEntry` records with a
  `LogType` of `ERROR`, `WARN` or `INFO`.
  - `add_log` records a request together with its response.
  - `add_msg` records a single message.
  - `clear` empties the log.
  - The log can be iterated and measured with `len`.
- `ovdiag.devices`: `parse_ip_link_output` extracts interface names that
  contain `can` from `ip -o link show` output. `find_socketcan_devices()`
  runs that command and returns the names. It returns an empty list when `ip`
  cannot be run.
- `ovdiag.selector`: `ServiceRef` wraps a `Service`.
  - `match_query` and `require_input` answer questions about the service.
  - `build_args` ORs replacement arguments into the payload.
  - `exec` runs the service through a `run_cmd(service_id, args)` callable
    that you supply.
  - `args_to_string` decodes the response.

  `ServiceSelector` keeps the read, write and actuation lists. It switches
  between them with `view(ViewKind...)`, filters them with `search`, picks a
  service with `pick`, and toggles looping with `begin_loop` and `stop_loop`.
  `exec_request` returns the selected service and its arguments.
- `ovdiag.ecuview`: helpers for a diagnostic session.
  - `select_variant` matches a reported variant ID against an ECU's variants
    and falls back to the first variant.
  - `lookup_dtc` and `make_displayable_dtc` turn raw trouble codes into a
    `DisplayableDTC`.
  - `dtc_table_rows`, `env_table_rows` and `ecu_info_rows` build table rows.

## Installation

```
pip install .
```

## Example

```python
from ovdiag.schema import load_ecu
from ovdiag.ecuview import select_variant

with open("ecu.json") as fp:
    ecu = load_ecu(fp)

match = select_variant(ecu, 0x1234)
for service in match.variant.downloads:
    print(service.name, service.description)
```

Decoding a parameter from a response:

```python
from ovdiag.diag import Parameter, DataFormat, FormatKind, ParamByteOrder

rpm = Parameter(
    name="Engine speed",
    unit="rpm",
    start_bit=0,
    length_bits=16,
    byte_order=ParamByteOrder.BIG_ENDIAN,
    data_format=DataFormat(FormatKind.IDENTICAL),
)
print(rpm.decode_value_to_string(bytes([0x03, 0x20])))  # 800 rpm
```

## What it does not do

- There are no adapter drivers and no bus or protocol stack. The package
  does not open CAN, ISO-TP or K-Line connections, and it does not speak UDS
  or KWP2000 itself. To run a service you pass a `run_cmd` callable that does
  the actual sending.
- There is no command-line tool and no graphical interface. The package is a
  library of data models and helpers.

## Running the tests

```
pip install .[test]
pytest
```