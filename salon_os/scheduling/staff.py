"""Staff capability lookup over the staff directory."""

from salon_os.scheduling.collaborators import StaffDirectory
from salon_os.scheduling.models import HOME_LOCATION


class StaffCapabilityLookup:
    """Answers which locations a staff member can be booked into."""

    def __init__(self, directory: StaffDirectory) -> None:
        self.directory = directory

    async def is_home_service_capable(self, staff_id: str) -> bool:
        # Either representation grants home service: the profile flag or a
        # "home" entry in the assigned locations.
        entry = await self.directory.get_staff_directory_entry(staff_id)
        if entry is None:
            return False
        return entry.home_service_capable or HOME_LOCATION in entry.locations

    async def physical_locations(self, staff_id: str) -> list[str]:
        """Assigned locations without "home", in assignment order."""
        entry = await self.directory.get_staff_directory_entry(staff_id)
        if entry is None:
            return []
        seen: list[str] = []
        for location in entry.locations:
            if location != HOME_LOCATION and location not in seen:
                seen.append(location)
        return seen
