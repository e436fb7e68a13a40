from __future__ import annotations

import click
from flask import current_app
from flask.cli import FlaskGroup, with_appcontext

from .entities import Microchip, Pet
from .errors import PetRegistryError
from .extensions import db
from .wiring import Registry, build_registry


def _db_uri() -> str:
    return current_app.config.get("SQLALCHEMY_DATABASE_URI", "")

@click.command("init-db")
@with_appcontext
def init_db_cmd():
    uri = _db_uri()
    click.echo(f"Creating tables on DB: {uri}")
    db.create_all()
    click.echo("✔ Tables created.")

@click.command("reset-db")
@click.option("--force", is_flag=True, help="Drop + create (cannot be undone).")
@with_appcontext
def reset_db_cmd(force: bool):
    uri = _db_uri()
    if not force:
        click.echo("Add --force to confirm dropping all tables.")
        return
    click.echo(f"Dropping & creating tables on DB: {uri}")
    db.drop_all()
    db.create_all()
    click.echo("✔ Database reset.")

DEMO_PETS = [
    ("Rex", "Dog", "TAG-0001", ("900123456789012", "HomeAgain")),
    ("Luna", "Cat", "TAG-0002", ("900123456789013", "Datamars")),
    ("Simba", "Cat", "TAG-0003", None),
    ("Kiwi", "Bird", "TAG-0004", None),
]

@click.command("seed-demo")
@with_appcontext
def seed_demo_cmd():
    registry = build_registry()
    click.echo(f"Seeding on DB: {_db_uri()}")
    for name, species, tag, chip in DEMO_PETS:
        microchip = Microchip(code=chip[0], brand=chip[1]) if chip else None
        pet = Pet(name=name, species=species, tag_code=tag, microchip=microchip)
        try:
            registry.pets.create(pet)
        except PetRegistryError as exc:
            click.echo(f"Skipped {tag}: {exc}")
            continue
        click.echo(f"Pet {pet.id}: {name} ({tag})")
    click.echo("✔ Seed done.")


MENU = """
========= PETS & MICROCHIPS =========
1. Register pet
2. List pets
3. Update pet
4. Delete pet (soft delete)
5. Register microchip
6. List microchips
7. Update microchip by ID
8. Delete microchip by ID (unsafe)
9. Update microchip by pet ID
10. Remove microchip by pet ID (safe)
0. Exit"""


def _echo_pet(pet: Pet) -> None:
    click.echo(
        f"ID: {pet.id}, Name: {pet.name}, Species: {pet.species}, Tag: {pet.tag_code}"
    )
    chip = pet.microchip
    if chip is not None:
        suffix = " [deleted]" if chip.state.deleted else ""
        click.echo(f"   Microchip: {chip.code} (Brand: {chip.brand}){suffix}")


def _echo_microchip(chip: Microchip) -> None:
    click.echo(f"ID: {chip.id}, Code: {chip.code}, Brand: {chip.brand}")


def _ask(label: str, current: str = "") -> str:
    # blank answer keeps ``current``
    return click.prompt(label, default=current, show_default=bool(current))


def _ask_microchip() -> Microchip:
    return Microchip(code=_ask("Chip code"), brand=_ask("Brand"))


def _register_pet(registry: Registry) -> None:
    pet = Pet(
        name=_ask("Name"),
        species=_ask("Species"),
        tag_code=_ask("Tag code"),
    )
    if click.confirm("Add a microchip?", default=False):
        pet.microchip = _ask_microchip()
    registry.pets.create(pet)
    click.echo(f"Pet registered with ID: {pet.id}")


def _list_pets(registry: Registry) -> None:
    mode = click.prompt("(1) list all or (2) search by name/species", type=int)
    if mode == 1:
        pets = registry.pets.get_all()
    elif mode == 2:
        pets = registry.pets.search_by_name_or_species(_ask("Text to search"))
    else:
        click.echo("Invalid option.")
        return
    if not pets:
        click.echo("No pets found.")
        return
    for pet in pets:
        _echo_pet(pet)


def _update_pet(registry: Registry) -> None:
    pet = registry.pets.get_by_id(click.prompt("Pet ID", type=int))
    if pet is None:
        click.echo("Pet not found.")
        return
    pet.name = _ask("Name", pet.name)
    pet.species = _ask("Species", pet.species)
    pet.tag_code = _ask("Tag code", pet.tag_code)

    chip = pet.microchip
    if chip is not None and not chip.state.deleted:
        if click.confirm("Update the microchip?", default=False):
            chip.code = _ask("Chip code", chip.code)
            chip.brand = _ask("Brand", chip.brand)
    elif click.confirm("The pet has no microchip. Add one?", default=False):
        pet.microchip = _ask_microchip()

    registry.pets.update(pet)
    click.echo("Pet updated.")


def _delete_pet(registry: Registry) -> None:
    registry.pets.delete(click.prompt("Pet ID", type=int))
    click.echo("Pet deleted.")


def _register_microchip(registry: Registry) -> None:
    chip = registry.microchips.create(_ask_microchip())
    click.echo(f"Microchip registered with ID: {chip.id}")


def _list_microchips(registry: Registry) -> None:
    chips = registry.microchips.get_all()
    if not chips:
        click.echo("No microchips found.")
        return
    for chip in chips:
        _echo_microchip(chip)


def _update_microchip(registry: Registry) -> None:
    chip = registry.microchips.get_by_id(click.prompt("Microchip ID", type=int))
    if chip is None:
        click.echo("Microchip not found.")
        return
    chip.code = _ask("Chip code", chip.code)
    chip.brand = _ask("Brand", chip.brand)
    registry.microchips.update(chip)
    click.echo("Microchip updated.")


def _delete_microchip(registry: Registry) -> None:
    click.secho("Pets referencing this microchip keep pointing at it.", fg="yellow")
    registry.microchips.delete(click.prompt("Microchip ID", type=int))
    click.echo("Microchip deleted.")


def _pet_with_microchip(registry: Registry):
    pet = registry.pets.get_by_id(click.prompt("Pet ID", type=int))
    if pet is None:
        click.echo("Pet not found.")
        return None
    if pet.microchip is None:
        click.echo("The pet has no microchip.")
        return None
    return pet


def _update_microchip_of_pet(registry: Registry) -> None:
    pet = _pet_with_microchip(registry)
    if pet is None:
        return
    chip = pet.microchip
    registry.pets.update_microchip_of_pet(
        pet.id,
        code=_ask("Chip code", chip.code),
        brand=_ask("Brand", chip.brand),
    )
    click.echo("Microchip updated.")


def _remove_microchip_of_pet(registry: Registry) -> None:
    pet = _pet_with_microchip(registry)
    if pet is None:
        return
    registry.pets.safely_remove_microchip(pet.id, pet.microchip_id)
    click.echo("Microchip removed and pet reference cleared.")


ACTIONS = {
    1: _register_pet,
    2: _list_pets,
    3: _update_pet,
    4: _delete_pet,
    5: _register_microchip,
    6: _list_microchips,
    7: _update_microchip,
    8: _delete_microchip,
    9: _update_microchip_of_pet,
    10: _remove_microchip_of_pet,
}

@click.command("menu")
@with_appcontext
def menu_cmd():
    """Interactive console for pets and microchips."""
    registry = build_registry()
    while True:
        click.echo(MENU)
        try:
            choice = click.prompt("Option", type=int)
        except click.Abort:
            break
        if choice == 0:
            break
        action = ACTIONS.get(choice)
        if action is None:
            click.echo("Invalid option.")
            continue
        try:
            action(registry)
        except PetRegistryError as exc:
            click.secho(f"Error: {exc}", fg="red", err=True)
        except click.Abort:
            break
    click.echo("Goodbye.")


def _create_app():
    from . import create_app

    return create_app()


main = FlaskGroup(create_app=_create_app, help="Pet and microchip registry.")
