from dataclasses import dataclass

from .gateways.microchips import MicrochipGateway
from .gateways.pets import PetGateway
from .services.microchips import MicrochipService
from .services.pets import PetService


@dataclass
class Registry:
    pets: PetService
    microchips: MicrochipService


def build_registry() -> Registry:
    """Wire gateways into coordinators. Needs an active app context to be used."""
    microchips = MicrochipService(MicrochipGateway())
    pets = PetService(PetGateway(), microchips)
    return Registry(pets=pets, microchips=microchips)
