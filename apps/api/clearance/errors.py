from __future__ import annotations


class ClearanceError(RuntimeError):
  status_code = 400

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message
    self.headers: dict[str, str] | None = None


class ProjectNotFound(ClearanceError):
  status_code = 404

  def __init__(self, project_id: str) -> None:
    super().__init__("Project not found")
    self.project_id = project_id


class TaskNotFound(ClearanceError):
  status_code = 404

  def __init__(self, task_id: str) -> None:
    super().__init__("Task not found")
    self.task_id = task_id


class RuleTargetInvalid(ClearanceError):
  def __init__(self, category: str) -> None:
    super().__init__("Rule needs a userId or roleTarget")
    self.category = category


class StageOutOfOrder(ClearanceError):
  status_code = 409

  def __init__(self, stage_type: str, pending: list[str]) -> None:
    super().__init__(f"Cannot complete {stage_type} before {', '.join(pending)}")
    self.stage_type = stage_type
    self.pending = pending


class InvalidCredentials(ClearanceError):
  status_code = 401

  def __init__(self) -> None:
    super().__init__("Invalid credentials")


class UserDisabled(ClearanceError):
  status_code = 403

  def __init__(self) -> None:
    super().__init__("User disabled")


class LoginThrottled(ClearanceError):
  status_code = 429

  def __init__(self, retry_after: int) -> None:
    super().__init__("Too many failed logins")
    self.retry_after = retry_after
    self.headers = {"Retry-After": str(retry_after)}


class ApiTokenNotFound(ClearanceError):
  status_code = 404

  def __init__(self, token_id: str) -> None:
    super().__init__("Token not found")
    self.token_id = token_id
