from sqlalchemy import Column, String, Integer, Text
from models.base import Base


class GameImage(Base):
    """
    One image descriptor of a localized product.

    height/width use -1 when the catalog omits them; text key columns use "".
    """
    __tablename__ = "game_images"

    product_id = Column(String(32), primary_key=True)
    file_id = Column(String(128), primary_key=True)
    language = Column(String(8), primary_key=True)
    market = Column(String(8), primary_key=True)
    image_purpose = Column(String(64), primary_key=True)
    image_position_info = Column(String(64), primary_key=True)

    height = Column(Integer, nullable=False, default=-1)
    width = Column(Integer, nullable=False, default=-1)
    uri = Column(Text, nullable=False, default="")
