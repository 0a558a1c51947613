import click
from app.core.database import SessionLocal
from app.models.user import User
from app.models.subscription import Subscription
from app.services.subscription_service import PLAN_FEATURES, apply_plan, new_free_subscription
import logging

logger = logging.getLogger(__name__)


def _find_user(db, email, user_id):
    if user_id:
        return db.query(User).filter(User.id == user_id).first()
    return db.query(User).filter(User.email == email).first()


@click.group()
def cli():
    """Revuverse CLI commands"""
    pass


@cli.command()
@click.option('--email', required=False, help='User email')
@click.option('--id', 'user_id', required=False, help='User id (Firebase UID)')
@click.option('--set', 'set_admin', is_flag=True, help='Grant the admin role')
@click.option('--remove', 'remove_admin', is_flag=True, help='Revoke the admin role')
@click.option('--list', 'list_admins', is_flag=True, help='List all admins')
def role(email, user_id, set_admin, remove_admin, list_admins):
    """Manage the admin role of users"""
    db = SessionLocal()
    try:
        if list_admins:
            admins = db.query(User).filter(User.role == 'admin').all()
            if not admins:
                click.echo("No admins found")
            else:
                click.echo(f"\nFound {len(admins)} admins:\n")
                for user in admins:
                    click.echo(f"  - {user.email or '<no-email>'} (ID: {user.id}, Plan: {user.plan})")
            return

        if not email and not user_id:
            click.echo("❌ Please provide --email or --id for this operation", err=True)
            return

        user = _find_user(db, email, user_id)
        if not user:
            click.echo(f"❌ User not found: {user_id or email}", err=True)
            return

        display_ident = user.email or user.id
        if set_admin:
            if user.role == 'admin':
                click.echo(f"✓ User {display_ident} is already an admin")
            else:
                user.role = 'admin'
                db.commit()
                click.echo(f"✓ Granted admin role to {display_ident}")
        elif remove_admin:
            if user.role != 'admin':
                click.echo(f"✓ User {display_ident} is not an admin")
            else:
                user.role = 'user'
                db.commit()
                click.echo(f"✓ Revoked admin role from {display_ident}")
        else:
            click.echo(f"User {display_ident} has role {user.role}")
    except Exception as e:
        db.rollback()
        logger.error(f"CLI error: {e}")
        click.echo(f"❌ Error: {e}", err=True)
    finally:
        db.close()


@cli.command()
@click.option('--email', required=False, help='User email')
@click.option('--id', 'user_id', required=False, help='User id (Firebase UID)')
@click.option('--set', 'new_plan', type=click.Choice(sorted(PLAN_FEATURES)), required=False, help='Plan to switch to')
@click.option('-y', '--yes', 'confirm', is_flag=True, help='Skip confirmation')
def plan(email, user_id, new_plan, confirm):
    """Show or change a user's subscription plan"""
    db = SessionLocal()
    try:
        if not email and not user_id:
            click.echo("❌ Please provide --email or --id for this operation", err=True)
            return

        user = _find_user(db, email, user_id)
        if not user:
            click.echo(f"❌ User not found: {user_id or email}", err=True)
            return

        display_ident = user.email or user.id
        subscription = db.query(Subscription).filter(Subscription.user_id == user.id).first()

        if not new_plan:
            if subscription:
                click.echo(f"User {display_ident} is on {subscription.plan} ({subscription.status})")
                for key, value in subscription.features.items():
                    click.echo(f"  - {key}: {value}")
            else:
                click.echo(f"User {display_ident} has no subscription")
            return

        if not confirm:
            try:
                if not click.confirm(f"Switch {display_ident} to {new_plan}?", default=False):
                    click.echo("Aborted")
                    return
            except click.exceptions.Abort:
                click.echo("\nAborted")
                return

        if not subscription:
            subscription = new_free_subscription(user.id)
            db.add(subscription)
        apply_plan(subscription, new_plan)
        user.plan = new_plan
        db.commit()
        click.echo(f"✓ {display_ident} is now on {new_plan}")
    except Exception as e:
        db.rollback()
        logger.error(f"CLI error: {e}")
        click.echo(f"❌ Error: {e}", err=True)
    finally:
        db.close()


if __name__ == '__main__':
    cli()
