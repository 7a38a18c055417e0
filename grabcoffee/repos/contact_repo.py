from sqlalchemy.orm import Session
from grabcoffee.data.models.contact import NoProfileContactModel

class ContactRepo:
    def __init__(self, db: Session):
        self.db = db

    def insert_contact(self, contact: NoProfileContactModel) -> NoProfileContactModel:
        self.db.add(contact)
        self.db.commit()
        self.db.refresh(contact)
        return contact
