from sqlalchemy.orm import Session
from grabcoffee.data.models.profile import ProfileModel
from grabcoffee.repos.profile_repo import ProfileRepo


class ProfileService:
    def __init__(self, db: Session):
        self.repo = ProfileRepo(db)

    def create_profile(self, user_id: str, full_name: str, email: str, phone: str | None = None) -> ProfileModel:
        existing = self.repo.get_profile(user_id)
        if existing:
            return existing

        profile = ProfileModel(
            id=user_id,
            full_name=full_name.strip(),
            email=email.strip(),
            phone=(phone or "").strip() or None,
        )
        return self.repo.create_profile(profile)

    def get_profile(self, user_id: str) -> ProfileModel | None:
        return self.repo.get_profile(user_id)
