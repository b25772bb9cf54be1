"""Hand-seeded Triangle-area shops.

These seed the known-shop names so discovery only surfaces places the app does
not already list, and back the `seed-samples` command.
"""
from __future__ import annotations

from typing import List

from .models import BAKERY_EMOJI, COFFEE_EMOJI, PlaceRecord

SAMPLE_SHOPS: List[PlaceRecord] = [
    # Raleigh
    PlaceRecord(name="Sola Coffee", latitude=35.7796, longitude=-78.6382, address="119 E Hargett St, Raleigh, NC"),
    PlaceRecord(
        name="Jubala Village",
        latitude=35.7831,
        longitude=-78.6811,
        address="4450 Glen Forest Dr, Raleigh, NC",
        category_emoji=BAKERY_EMOJI,
    ),
    PlaceRecord(name="Black Dog Coffee", latitude=35.7721, longitude=-78.6388, address="3800 Glenwood Ave, Raleigh, NC"),
    PlaceRecord(name="Café Helios", latitude=35.7866, longitude=-78.6445, address="413 Glenwood Ave, Raleigh, NC"),
    PlaceRecord(name="Morning Times", latitude=35.7887, longitude=-78.6576, address="10 E Martin St, Raleigh, NC"),
    PlaceRecord(name="Cup A Joe", latitude=35.7943, longitude=-78.6564, address="2801 Hillsborough St, Raleigh, NC"),
    # Durham
    PlaceRecord(name="Bean Traders", latitude=35.9940, longitude=-78.8986, address="1010 9th St, Durham, NC"),
    PlaceRecord(name="Cocoa Cinnamon", latitude=35.9965, longitude=-78.9017, address="420 W Geer St, Durham, NC"),
    PlaceRecord(name="Joe Van Gogh", latitude=36.0014, longitude=-78.9106, address="236 W Main St, Durham, NC"),
    PlaceRecord(name="Dune Coffee", latitude=35.9876, longitude=-78.9051, address="305 E Chapel Hill St, Durham, NC"),
    # Chapel Hill
    PlaceRecord(
        name="Carolina Coffee Shop",
        latitude=35.9132,
        longitude=-79.0558,
        address="138 E Franklin St, Chapel Hill, NC",
    ),
    PlaceRecord(name="Caffe Driade", latitude=35.9101, longitude=-79.0625, address="1215 E Franklin St, Chapel Hill, NC"),
    # Cary
    PlaceRecord(
        name="Global Village Coffee",
        latitude=35.7596,
        longitude=-78.7767,
        address="230 E Chatham St, Cary, NC",
        category_emoji=COFFEE_EMOJI,
    ),
]


def sample_shop_names() -> List[str]:
    return [shop.name.lower() for shop in SAMPLE_SHOPS]
