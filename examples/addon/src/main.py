from hopper.script_globals import define_component, establish_addon, mods
from .components import Greeter, HostileMob

with mods:
    mods.server.world.sendMessage("Sample addon bundle evaluated.")


def _addon(c):
    c.implement(HostileMob("sample:ghoul"))
    c.implement(HostileMob("sample:brute", health=40))
    c.implement(Greeter("Sample addon loaded."))
    c.implement(Greeter("This greeting is deduplicated."))
    c.define.raw_text("pack.name=Sample Addon", root_dir="RP/texts", ext="lang", name="en_US")


establish_addon(define_component(_addon)())
