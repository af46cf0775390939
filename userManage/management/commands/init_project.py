from django.core.management.base import BaseCommand
from django.contrib.auth.models import Group
from django.core.management import call_command
from django.contrib.auth import get_user_model

from userManage.models import Major
from userManage.permissions import COMP_ADMIN_ROLE, STUDENT_ROLE

PROJECT_APPS = ['userManage', 'userProfile', 'competitions', 'team', 'reimbursement']

DEFAULT_MAJORS = ['Informatika', 'Sistem Informasi', 'Bisnis Digital', 'Desain Komunikasi Visual']


class Command(BaseCommand):
    help = '初始化项目：执行迁移、创建角色组、专业和初始管理员'

    def add_arguments(self, parser):
        parser.add_argument('--skip-migrate', action='store_true', help='不执行数据库迁移')
        parser.add_argument('--admin-id', default='0000000001', help='初始管理员学号')
        parser.add_argument('--admin-password', default='admin123', help='初始管理员密码')

    def handle(self, *args, **options):
        User = get_user_model()
        # 1. 执行数据库迁移
        if not options['skip_migrate']:
            self.stdout.write(self.style.SUCCESS('正在生成并执行数据库迁移...'))
            call_command('makemigrations', *PROJECT_APPS)
            call_command('migrate')

        # 2. 创建角色组
        for role_name in [COMP_ADMIN_ROLE, STUDENT_ROLE]:
            group, created = Group.objects.get_or_create(name=role_name)
            if created:
                self.stdout.write(f'成功创建组: {role_name}')
            else:
                self.stdout.write(f'组 {role_name} 已存在')

        # 3. 专业
        for name in DEFAULT_MAJORS:
            Major.objects.get_or_create(name=name)

        # 4. 初始管理员
        admin_id = options['admin_id']
        if User.objects.filter(student_id=admin_id).exists():
            self.stdout.write(self.style.WARNING(f'用户 {admin_id} 已存在，跳过'))
        else:
            admin = User.objects.create_superuser(
                student_id=admin_id,
                email=f'{admin_id}@example.com',
                password=options['admin_password'],
                name='Administrator',
            )
            admin.groups.add(Group.objects.get(name=COMP_ADMIN_ROLE))
            self.stdout.write(self.style.SUCCESS(f'超级用户 {admin_id} 创建成功'))

        self.stdout.write(self.style.SUCCESS('项目初始化完成！'))
