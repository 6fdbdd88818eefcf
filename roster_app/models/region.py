# roster_app/models/region.py
"""
Geographic reference tables (province > city > district > village).

Rows are loaded from the national master data and treated as read-only by the
importer. Names are stored as uppercase canonical display names.
"""

from .base import BaseModel, db


class Province(BaseModel):
    __tablename__ = "provinces"

    id = db.Column(db.Integer, primary_key=True)
    province_code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)

    def __repr__(self):
        return f"<Province {self.province_code} {self.name}>"


class City(BaseModel):
    __tablename__ = "cities"

    id = db.Column(db.Integer, primary_key=True)
    city_code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    province_code = db.Column(
        db.String(20), db.ForeignKey("provinces.province_code"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False, index=True)

    def __repr__(self):
        return f"<City {self.city_code} {self.name}>"


class District(BaseModel):
    __tablename__ = "districts"

    id = db.Column(db.Integer, primary_key=True)
    district_code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    city_code = db.Column(db.String(20), db.ForeignKey("cities.city_code"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)

    def __repr__(self):
        return f"<District {self.district_code} {self.name}>"


class Village(BaseModel):
    __tablename__ = "villages"

    id = db.Column(db.Integer, primary_key=True)
    village_code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    district_code = db.Column(
        db.String(20), db.ForeignKey("districts.district_code"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False, index=True)

    def __repr__(self):
        return f"<Village {self.village_code} {self.name}>"
