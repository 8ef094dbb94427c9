from dataclasses import dataclass

import httpx

from uzerimde.config import config

from .avatar import AvatarGateway
from .base import RemoteServiceError
from .clothing import ClothingGateway
from .protocols import AvatarProvider, ClothingProvider, SizingProvider
from .simulated import SimulatedAvatarGateway, SimulatedClothingGateway, SimulatedSizingGateway
from .sizing import SizingGateway


@dataclass
class Gateways:
    avatar: AvatarProvider
    clothing: ClothingProvider
    sizing: SizingProvider


def build_gateways(client: httpx.AsyncClient) -> Gateways:
    """Real provider gateways, or the simulated set when ``providers.simulate``."""
    p = config.providers
    if p.simulate:
        return Gateways(
            avatar=SimulatedAvatarGateway(),
            clothing=SimulatedClothingGateway(),
            sizing=SimulatedSizingGateway(),
        )
    return Gateways(
        avatar=AvatarGateway(client, p.avaturn_base_url, p.avaturn_api_key),
        clothing=ClothingGateway(client, p.fashn_base_url, p.fashn_api_key),
        sizing=SizingGateway(client, p.sizer_base_url, p.sizer_api_key),
    )
