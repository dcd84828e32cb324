from django.apps import AppConfig


class IntakeModuleConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'Intake_Module'
    verbose_name = 'Intake Module'
