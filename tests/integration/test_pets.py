import pytest

from petregistry.entities import Microchip, Pet
from petregistry.extensions import db
from petregistry.errors import NotFoundError, StorageError, ValidationError
from petregistry.models.microchip import MicrochipRow
from petregistry.models.pet import PetRow


def test_create_and_fetch_round_trip(pets, make_pet):
    pet = make_pet("Rex", "Dog", "TAG-1", chip=("CHIP-1", "BrandX"))

    fetched = pets.get_by_id(pet.id)
    assert fetched.name == "Rex"
    assert fetched.species == "Dog"
    assert fetched.tag_code == "TAG-1"
    assert fetched.microchip_id == pet.microchip_id
    assert fetched.microchip.code == "CHIP-1"
    assert fetched.same_record(pet)


def test_create_with_new_microchip_inserts_chip_first(pets, microchips):
    chip = Microchip(code="CHIP-1", brand="BrandX")
    pet = pets.create(Pet(name="Rex", species="Dog", tag_code="TAG-1", microchip=chip))

    assert chip.id > 0
    assert db.session.get(PetRow, pet.id).microchip_id == chip.id
    assert microchips.get_by_id(chip.id).code == "CHIP-1"


def test_create_with_existing_microchip_updates_it(pets, microchips, make_chip):
    chip = make_chip("CHIP-1", "BrandX")
    chip.brand = "BrandZ"

    pet = pets.create(Pet(name="Rex", species="Dog", tag_code="TAG-1", microchip=chip))

    assert pet.microchip_id == chip.id
    assert microchips.get_by_id(chip.id).brand == "BrandZ"
    assert MicrochipRow.query.count() == 1


def test_create_without_microchip(pets, make_pet):
    pet = make_pet()
    assert pets.get_by_id(pet.id).microchip is None
    assert db.session.get(PetRow, pet.id).microchip_id is None


@pytest.mark.parametrize(
    "name,species,tag",
    [("", "Dog", "TAG-1"), ("Rex", " ", "TAG-1"), ("Rex", "Dog", ""), ("Rex", "Dog", "T" * 21)],
)
def test_create_rejects_invalid_fields(pets, name, species, tag):
    with pytest.raises(ValidationError):
        pets.create(Pet(name=name, species=species, tag_code=tag))
    assert PetRow.query.count() == 0


def test_invalid_microchip_rejected_before_any_write(pets):
    pet = Pet(name="Rex", species="Dog", tag_code="TAG-1", microchip=Microchip(code="", brand="X"))
    with pytest.raises(ValidationError):
        pets.create(pet)
    assert PetRow.query.count() == 0
    assert MicrochipRow.query.count() == 0


def test_duplicate_tag_never_writes_microchip(pets, make_pet):
    make_pet(tag_code="TAG-1")
    chip = Microchip(code="CHIP-1", brand="BrandX")
    with pytest.raises(ValidationError):
        pets.create(Pet(name="Fido", species="Dog", tag_code="TAG-1", microchip=chip))
    assert chip.state.is_new
    assert MicrochipRow.query.count() == 0


def test_failed_pet_insert_rolls_back_new_microchip(pets, make_pet, monkeypatch):
    make_pet(tag_code="TAG-1")
    # let the duplicate reach the unique index
    monkeypatch.setattr(pets.gateway, "find_by_exact_tag", lambda tag: None)
    chip = Microchip(code="CHIP-1", brand="BrandX")
    pet = Pet(name="Fido", species="Dog", tag_code="TAG-1", microchip=chip)

    with pytest.raises(StorageError):
        pets.create(pet)

    assert chip.state.is_new
    assert pet.state.is_new
    assert MicrochipRow.query.count() == 0
    assert PetRow.query.count() == 1


def test_update_changes_fields(pets, make_pet):
    pet = make_pet()
    pet.name = "Rexy"
    pet.species = "Wolf"
    pets.update(pet)

    fetched = pets.get_by_id(pet.id)
    assert (fetched.name, fetched.species, fetched.tag_code) == ("Rexy", "Wolf", "TAG-1")


def test_update_requires_positive_id(pets):
    with pytest.raises(ValidationError):
        pets.update(Pet(name="Rex", species="Dog", tag_code="TAG-1"))


def test_update_missing_pet_is_not_found(pets):
    pet = Pet(name="Ghost", species="Dog", tag_code="TAG-404")
    pet.state.id = 404
    with pytest.raises(NotFoundError):
        pets.update(pet)


def test_update_can_attach_new_microchip(pets, make_pet):
    pet = make_pet()
    pet.microchip = Microchip(code="CHIP-7", brand="BrandX")
    pets.update(pet)

    fetched = pets.get_by_id(pet.id)
    assert fetched.microchip is not None
    assert fetched.microchip.code == "CHIP-7"
    assert fetched.microchip_id == pet.microchip.id


def test_update_missing_pet_does_not_keep_new_microchip(pets):
    pet = Pet(name="Ghost", species="Dog", tag_code="TAG-404")
    pet.state.id = 404
    pet.microchip = Microchip(code="CHIP-7", brand="BrandX")
    with pytest.raises(NotFoundError):
        pets.update(pet)
    assert pet.microchip.state.is_new
    assert MicrochipRow.query.count() == 0


def test_delete_is_logical_and_keeps_microchip(pets, microchips, make_pet):
    pet = make_pet(chip=("CHIP-1", "BrandX"))
    chip_id = pet.microchip_id

    pets.delete(pet.id)

    assert pets.get_by_id(pet.id) is None
    assert pets.get_all() == []
    assert db.session.get(PetRow, pet.id).deleted is True
    chip = microchips.get_by_id(chip_id)
    assert chip is not None
    assert chip.state.deleted is False


def test_delete_missing_pet_is_not_found(pets):
    with pytest.raises(NotFoundError):
        pets.delete(12345)


@pytest.mark.parametrize("bad_id", [0, -1])
def test_pet_id_must_be_positive(pets, bad_id):
    with pytest.raises(ValidationError):
        pets.get_by_id(bad_id)
    with pytest.raises(ValidationError):
        pets.delete(bad_id)


def test_get_missing_pet_returns_none(pets):
    assert pets.get_by_id(77) is None


def test_search_by_name_or_species(pets, make_pet):
    rex = make_pet("Rex", "Dog", "TAG-1")
    luna = make_pet("Luna", "Cat", "TAG-2")
    make_pet("Kiwi", "Bird", "TAG-3")

    assert [p.id for p in pets.search_by_name_or_species("dog")] == [rex.id]
    assert [p.id for p in pets.search_by_name_or_species("LUN")] == [luna.id]
    assert pets.search_by_name_or_species("zebra") == []


def test_search_treats_wildcards_literally(pets, make_pet):
    make_pet("Rex", "Dog", "TAG-1")
    assert pets.search_by_name_or_species("%") == []
    assert pets.search_by_name_or_species("_") == []


def test_search_excludes_deleted(pets, make_pet):
    pet = make_pet("Rex", "Dog", "TAG-1")
    pets.delete(pet.id)
    assert pets.search_by_name_or_species("Rex") == []


def test_search_rejects_empty_filter(pets):
    with pytest.raises(ValidationError):
        pets.search_by_name_or_species("   ")


def test_find_by_exact_tag(pets, make_pet):
    pet = make_pet(tag_code="TAG-1", chip=("CHIP-1", "BrandX"))

    found = pets.find_by_exact_tag(" TAG-1 ")
    assert found.same_record(pet)
    assert found.microchip.code == "CHIP-1"
    assert pets.find_by_exact_tag("TAG-") is None


def test_find_by_exact_tag_rejects_empty(pets):
    with pytest.raises(ValidationError):
        pets.find_by_exact_tag("")


def test_update_microchip_of_pet(pets, microchips, make_pet):
    pet = make_pet(chip=("CHIP-1", "BrandX"))

    chip = pets.update_microchip_of_pet(pet.id, code="CHIP-2", brand="")

    assert chip.code == "CHIP-2"
    stored = microchips.get_by_id(pet.microchip_id)
    assert (stored.code, stored.brand) == ("CHIP-2", "BrandX")


def test_update_microchip_of_pet_without_chip(pets, make_pet):
    pet = make_pet()
    with pytest.raises(ValidationError):
        pets.update_microchip_of_pet(pet.id, code="CHIP-2")


def test_update_microchip_of_missing_pet(pets):
    with pytest.raises(ValidationError):
        pets.update_microchip_of_pet(99, code="CHIP-2")


def test_update_saves_microchip_edits_with_pet(pets, microchips, make_pet):
    pet = make_pet(chip=("CHIP-1", "BrandX"))
    pet.microchip.brand = "BrandY"
    pets.update(pet)
    assert microchips.get_by_id(pet.microchip_id).brand == "BrandY"


def test_rejected_update_leaves_microchip_untouched(pets, microchips, make_pet):
    make_pet("Rex", tag_code="TAG-1")
    luna = make_pet("Luna", "Cat", "TAG-2", chip=("CHIP-1", "BrandX"))
    luna.tag_code = "TAG-1"
    luna.microchip.code = "CHIP-NEW"

    with pytest.raises(ValidationError):
        pets.update(luna)

    assert microchips.get_by_id(luna.microchip_id).code == "CHIP-1"


def test_microchip_edit_rolls_back_when_pet_is_missing(pets, microchips, make_chip):
    chip = make_chip("CHIP-1", "BrandX")
    ghost = Pet(name="Ghost", species="Dog", tag_code="TAG-404", microchip=chip)
    ghost.state.id = 404
    chip.code = "CHIP-NEW"

    with pytest.raises(NotFoundError):
        pets.update(ghost)

    assert microchips.get_by_id(chip.id).code == "CHIP-1"


def test_delete_deleted_pet_is_not_found(pets, make_pet):
    pet = make_pet()
    pets.delete(pet.id)
    with pytest.raises(NotFoundError):
        pets.delete(pet.id)


def test_update_deleted_pet_is_not_found(pets, make_pet):
    pet = make_pet()
    pets.delete(pet.id)
    pet.name = "Rexy"
    with pytest.raises(NotFoundError):
        pets.update(pet)
    assert db.session.get(PetRow, pet.id).name == "Rex"
