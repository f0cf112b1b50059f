"""Supabase-backed administrator lookup."""

from dataclasses import dataclass

from supabase import Client

from roteirando.services.auth import AdminAccount, AdminRepository


@dataclass
class SupabaseAdminRepository(AdminRepository):
    """Supabase implementation for administrator accounts."""

    client: Client

    def get_admin(self, email: str) -> AdminAccount | None:
        """Return the admin registered under the e-mail, if present."""
        response = (
            self.client.table("admins")
            .select("email, name, password")
            .eq("email", email.strip().lower())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return AdminAccount(
            email=str(row["email"]),
            name=row.get("name"),
            password=row.get("password") or None,
        )

    def update_password(self, email: str, password: str) -> None:
        """Store a new password hash for the admin."""
        response = (
            self.client.table("admins")
            .update({"password": password})
            .eq("email", email.strip().lower())
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to update admin password {email}")
