"""
Pydantic schemas for HTML form input and search query parsing.
"""

# Re-export schemas for convenient imports.
from .filters import FilterTag as FilterTag
from .filters import SupervisorFilters as SupervisorFilters
from .forms import ForgotPasswordForm as ForgotPasswordForm
from .forms import LoginForm as LoginForm
from .forms import ResetPasswordForm as ResetPasswordForm
from .forms import SupervisorRegistrationForm as SupervisorRegistrationForm
from .forms import TraineeRegistrationForm as TraineeRegistrationForm
