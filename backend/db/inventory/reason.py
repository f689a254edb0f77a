from sqlalchemy import Column, Integer, String, Text

from ..database import Base


class ReasonCode(Base):
    __tablename__ = "reason_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String, nullable=False, unique=True, index=True)  # lower_snake label, e.g. 'internal_use'
    description = Column(Text, nullable=True)

    @property
    def to_schema(self):
        return {"id": self.id, "code": self.code, "description": self.description}
