# deckhand

deckhand is a server for Stream Deck key pads. It finds decks through a
transport and keeps a set of profiles for each deck. The components that
modules provide drive the deck's keys. Clients talk to the server over
MessagePack-RPC.

## Installing

    pip install .

To run the tests as well:

    pip install ".[test]"
    pytest

## Running the server

    deckhand [--port PORT] [--home DIR]

The command starts `deckhand.engine.Engine`. The engine does three things:

- It serves RPC on all interfaces. The default port is 27015.
- It looks for decks once, in a background thread.
- It ticks every registered deck every 100 ms until it is interrupted.

`--home` picks the directory that holds the configuration. The default is
your home directory.

You can also run the engine from Python. This lets you hand it your own
modules and a transport:

```python
from deckhand.engine import Engine

engine = Engine(modules=[mixer], transport=my_transport, home="/tmp/deck-home", port=27015)
engine.start()   # blocks; call engine.stop() from another thread to finish
```

## Where state is kept

Everything lives under `<home>/.streamdeck`:

- `<serial>/` is a folder for each deck, named by the deck's serial number.
  It holds a `.config` file that names the profile to load at start. Next to
  it is one `<name>.profile` JSON file for each profile. A new deck gets a
  `default` profile with brightness 25 and one empty page, `Page 1`.
- `images/` caches the button images that clients send. Each image is stored
  under the upper-case MD5 hex digest of its bytes.
- `modules/` is created, but nothing is read from it (see below).

The helpers in `deckhand.config` manage this layout:

- `deck_folder_path`
- `default_profile_name`
- `load_deck_profile`
- `create_new_profile`
- `deck_profiles`
- `save_button_image`
- `calculate_md5`

Each helper takes an optional `home` argument.

## Profiles

`deckhand.profile.Profile` loads a profile file. Every setter writes the file
back:

```python
from deckhand.profile import Profile

profile = Profile(path_to_profile_file)
profile.set_button_label(3, "Mute")
profile.set_button_component(4, "MixerModule", "ShowMixer")
print(profile.name(), profile.current_page_name(), profile.pages(), profile.brightness())
print(profile.key_profile(3))   # KeyProfile(custom_image='', custom_label='Mute', ...)
```

## Writing components

A `deckhand.module_api.Module` groups component classes. It can also provide
a profile, which maps keys to component names. Keys that name unknown
components are dropped from it.

```python
from deckhand.module_api import Component, Module
from deckhand.settings import ConfigVarInt

mixer = Module("MixerModule")

@mixer.component
class ShowMixer(Component):
    def config_variables(self):
        return [ConfigVarInt("step", 5, 1, 20)]

    def init(self, device):
        self.device = device

    def name(self):
        return "Show Mixer"

    def image(self):
        return b""

    def tick(self):
        pass

    def action_press(self):
        self.device.set_profile("MixerModule")

    def action_release(self):
        pass

mixer.set_provided_profile({0: "ShowMixer", 1: "ShowMixer"})
```

A component receives a `DeviceButton` that is limited to the key it owns.
Through it the component can:

- read the deck id and its own key,
- change the brightness,
- read or switch the profile,
- ask for its key to be redrawn,
- get the image parameters.

Components can expose settings through `deckhand.settings.ComponentSettings`,
which holds these typed variables:

- `ConfigVarInt`
- `ConfigVarDouble`
- `ConfigVarString`
- `ConfigVarBool`
- `ConfigVarCombo`

A value of the wrong type, or one outside the limits, is ignored.
`deckhand.module_loader.ModuleLoader` holds the modules by name.

## Images

`deckhand.images` uses Pillow for key images:

- `load_raw_image`
- `prepare_image_for_deck`, which resizes to `TargetImageParameters` and flips
- `apply_label_on_image`
- `create_empty_image`

All of them return JPEG bytes.

## Talking to the server

```python
from deckhand.rpc import StreamDeckClient

with StreamDeckClient("127.0.0.1", 27015) as client:
    print(client.components_list())
    for serial in client.devices_list():
        print(serial, client.device_current_profile(serial), client.device_profiles(serial))
        client.set_device_brightness(serial, 50)
        client.set_device_button_label(serial, 0, "Hi")
```

`StreamDeckClient` connects to port 11925 unless you give it another port.
The server listens on 27015 by default, so pass the port explicitly. A failed
call raises `deckhand.rpc.RpcError`.

## Decks and transports

`deckhand.manager.DeviceManager` asks a `deckhand.devices.Transport` for
devices of each known product ID. It wraps each device it finds in the deck
driver registered for that product.

`deckhand.devices.create_debug_transport()` returns a `FakeTransport`. It
reports one emulated Original V2 deck. Its `FakeDevice` talks to a software
emulator over two ZeroMQ sockets:

- It pushes reports, such as button images, on `tcp://127.0.0.1:33634`.
- It pulls key states from `tcp://127.0.0.1:33633`.

## What it does not do

- There is no USB transport. The `deckhand` command always uses the debug
  transport, so it drives only an emulator. To reach real hardware, pass your
  own `Transport` to `Engine`.
- The only deck driver is `deckhand.original_v2.StreamDeckOriginalV2`. Other
  models are detected by product ID and then skipped with a warning.
- Modules are not loaded from `~/.streamdeck/modules`. They must be passed to
  `Engine` or `ModuleLoader` in Python, and the `deckhand` command starts with
  none.
- There is no graphical front end. Only the RPC client is provided.