"""
Application configuration management
"""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """
    Settings for the Sorald repair step, loaded from environment variables
    """
    # Application
    APP_NAME: str = "sorald-bot - Sorald repair step"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Workspace
    WORKSPACE_PATH: str = "workspace"
    REPO_DIR_NAME: str = "repo"
    SCRATCH_REPO_PATH: str = "tmp_repo"
    PIPELINE_LOG_PATH: Optional[str] = None

    # Sorald
    SONAR_RULES: str = "2111,2116,2164,2184,2225,2272,4973"
    REPAIR_MODE: str = "SNIPER"
    SORALD_JAR_PATH: str = "sorald.jar"
    JAVA_EXECUTABLE: str = "java"
    SORALD_TIMEOUT: int = 1800

    # Pull requests
    CREATE_PR: bool = False
    FORK_REPO: bool = False
    BRANCH_PREFIX: str = "repairnator-patch"

    # GitHub
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_HTTP_TIMEOUT: float = 30.0

    # Commit identity
    GIT_COMMITTER_NAME: str = "repairnator"
    GIT_COMMITTER_EMAIL: str = "repairnator@users.noreply.github.com"

    @property
    def sonar_rules(self) -> List[str]:
        """SONAR_RULES split on commas, blanks dropped"""
        return [rule.strip() for rule in self.SONAR_RULES.split(",") if rule.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env

# Global settings instance
settings = Settings()
