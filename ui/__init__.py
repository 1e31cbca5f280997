"""Web front end for the appointment front desk."""
