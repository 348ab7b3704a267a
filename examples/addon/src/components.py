"""Reusable components for the sample addon."""

from hopper.script_globals import buildtime, define_component


def _hostile_mob(c, identifier, health=20):
    name = identifier.split(":")[-1]
    # Entity definitions are only needed by the build; keep them out of the bundle.
    with buildtime:
        c.define.entity(
            {
                "format_version": "1.20.0",
                "minecraft:entity": {
                    "description": {"identifier": identifier, "is_spawnable": True},
                    "components": {"minecraft:health": {"value": health, "max": health}},
                },
            },
            name=name,
        )
        c.define.client_entity(
            {
                "format_version": "1.10.0",
                "minecraft:client_entity": {"description": {"identifier": identifier}},
            },
            name=name,
        )
    c.define.loot_table({"pools": []}, name=f"entities/{name}", once=f"loot:{name}")


HostileMob = define_component(_hostile_mob)


def _greeter(c, message):
    def _greet(m):
        m.server.world.sendMessage(message)

    c.define.script(_greet, once="greeter")


Greeter = define_component(_greeter)
